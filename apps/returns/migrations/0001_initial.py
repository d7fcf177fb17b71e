# Generated manually for the return-gift engine

import uuid
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('koudens', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ReturnEntryRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('return_status', models.CharField(choices=[('PENDING', '未返礼'), ('PARTIAL_RETURNED', '一部返礼'), ('COMPLETED', '返礼完了'), ('NOT_REQUIRED', '返礼不要')], default='PENDING', max_length=20)),
                ('return_items', models.JSONField(blank=True, default=list)),
                ('funeral_gift_amount', models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])),
                ('return_items_cost', models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])),
                ('additional_return_amount', models.GeneratedField(db_persist=True, expression=models.F('return_items_cost') + models.F('funeral_gift_amount'), output_field=models.IntegerField())),
                ('return_method', models.CharField(blank=True, max_length=50)),
                ('arrangement_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True)),
                ('shipping_postal_code', models.CharField(blank=True, max_length=10)),
                ('shipping_address', models.CharField(blank=True, max_length=300)),
                ('shipping_phone_number', models.CharField(blank=True, max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_return_records', to=settings.AUTH_USER_MODEL)),
                ('kouden_entry', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='return_record', to='koudens.koudenentry')),
            ],
            options={
                'db_table': 'return_entry_records',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['-created_at', '-id'], name='returns_created_id_idx'),
                    models.Index(fields=['return_status'], name='returns_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReturnItemMaster',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('price', models.PositiveIntegerField(default=0)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(blank=True, max_length=50)),
                ('image_url', models.URLField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('recommended_amount_min', models.PositiveIntegerField(blank=True, null=True)),
                ('recommended_amount_max', models.PositiveIntegerField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_return_item_masters', to=settings.AUTH_USER_MODEL)),
                ('kouden', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='return_item_masters', to='koudens.kouden')),
            ],
            options={
                'db_table': 'return_item_masters',
                'ordering': ['sort_order', 'name'],
                'constraints': [models.UniqueConstraint(fields=('kouden', 'name'), name='unique_item_master_name_per_kouden')],
            },
        ),
    ]
