# Generated manually for the ledger entry store

import uuid
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Kouden',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='owned_koudens', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'koudens',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['owner', 'created_at'], name='koudens_owner_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='Relationship',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('is_default', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('kouden', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='relationships', to='koudens.kouden')),
            ],
            options={
                'db_table': 'relationships',
                'ordering': ['name'],
                'unique_together': {('kouden', 'name')},
            },
        ),
        migrations.CreateModel(
            name='KoudenMember',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('role', models.CharField(choices=[('owner', 'Owner'), ('editor', 'Editor'), ('viewer', 'Viewer')], default='viewer', max_length=20)),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('kouden', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='koudens.kouden')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='kouden_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'kouden_members',
                'ordering': ['joined_at'],
                'unique_together': {('kouden', 'user')},
            },
        ),
        migrations.CreateModel(
            name='KoudenEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('organization', models.CharField(blank=True, max_length=200)),
                ('position', models.CharField(blank=True, max_length=100)),
                ('amount', models.PositiveIntegerField(validators=[MinValueValidator(0)])),
                ('attendance_type', models.CharField(choices=[('FUNERAL', '葬儀'), ('CONDOLENCE_VISIT', '弔問'), ('ABSENT', '欠席')], default='FUNERAL', max_length=20)),
                ('has_offering', models.BooleanField(default=False)),
                ('postal_code', models.CharField(blank=True, max_length=10)),
                ('address', models.CharField(blank=True, max_length=300)),
                ('phone_number', models.CharField(blank=True, max_length=30)),
                ('notes', models.TextField(blank=True)),
                ('version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_kouden_entries', to=settings.AUTH_USER_MODEL)),
                ('kouden', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='koudens.kouden')),
                ('relationship', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='entries', to='koudens.relationship')),
            ],
            options={
                'db_table': 'kouden_entries',
                'ordering': ['-created_at'],
                'verbose_name_plural': 'kouden entries',
                'indexes': [
                    models.Index(fields=['kouden', 'created_at'], name='entries_kouden_created_idx'),
                    models.Index(fields=['kouden', 'amount'], name='entries_kouden_amount_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Offering',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('offering_type', models.CharField(choices=[('FLOWER', '供花'), ('FOOD', '供物'), ('OTHER', 'その他')], default='OTHER', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('price', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('kouden', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offerings', to='koudens.kouden')),
            ],
            options={
                'db_table': 'offerings',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='OfferingAllocation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('allocated_amount', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('kouden_entry', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offering_allocations', to='koudens.koudenentry')),
                ('offering', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='allocations', to='koudens.offering')),
            ],
            options={
                'db_table': 'offering_allocations',
                'unique_together': {('offering', 'kouden_entry')},
            },
        ),
    ]
