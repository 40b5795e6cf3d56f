import uuid
from decimal import Decimal

import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Consultorio',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100, unique=True)),
                ('hourly_rate', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'consultorios',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='MemberProfile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('user_id', models.UUIDField(unique=True)),
                ('first_name', models.CharField(blank=True, default='', max_length=100)),
                ('last_name', models.CharField(blank=True, default='', max_length=100)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('role', models.CharField(choices=[('admin', 'Administrador'), ('user', 'Profesional')], default='user', max_length=20)),
                ('billing_mode', models.CharField(blank=True, choices=[('weekly', 'Semanal'), ('monthly', 'Mensual')], max_length=20, null=True)),
                ('access_system_name', models.CharField(blank=True, max_length=255, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'member_profiles',
                'ordering': ['last_name', 'first_name'],
            },
        ),
        migrations.CreateModel(
            name='AccessNameRule',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('access_name', models.CharField(max_length=255)),
                ('action', models.CharField(choices=[('ignore', 'Ignorar'), ('track', 'Registrar sin facturar')], max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'access_name_rules',
                'ordering': ['access_name'],
                'constraints': [
                    models.UniqueConstraint(django.db.models.functions.text.Lower('access_name'), name='unique_access_name_rule_ci'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccessLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('access_time', models.DateTimeField(db_index=True)),
                ('access_name', models.CharField(max_length=255)),
                ('content', models.TextField(blank=True, default='')),
                ('status', models.CharField(choices=[('valid', 'Válido'), ('no_reservation', 'Sin reserva'), ('unmatched', 'Sin coincidencia')], db_index=True, max_length=20)),
                ('user_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('reservation_id', models.UUIDField(blank=True, null=True)),
                ('notified', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'access_logs',
                'ordering': ['-access_time'],
                'constraints': [
                    models.UniqueConstraint(fields=('access_time', 'access_name'), name='unique_access_entry'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner_id', models.UUIDField(db_index=True)),
                ('start_time', models.DateTimeField(db_index=True)),
                ('end_time', models.DateTimeField()),
                ('kind', models.CharField(choices=[('Eventual', 'Eventual'), ('Fija', 'Fija')], default='Eventual', max_length=20)),
                ('uses_shared_accessory', models.BooleanField(default=False)),
                ('title', models.CharField(blank=True, default='', max_length=255)),
                ('status', models.CharField(choices=[('activa', 'Activa'), ('cancelada con penalización', 'Cancelada con penalización'), ('cancelada sin penalización', 'Cancelada sin penalización'), ('utilizada', 'Utilizada'), ('reagendada', 'Reagendada')], db_index=True, default='activa', max_length=40)),
                ('recurrence_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('recurrence_end_date', models.DateField(blank=True, null=True)),
                ('reschedule_source_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('reschedule_deadline', models.DateTimeField(blank=True, null=True)),
                ('was_rescheduled', models.BooleanField(default=False)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('consultorio', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='core.consultorio')),
            ],
            options={
                'db_table': 'reservations',
                'ordering': ['start_time'],
                'indexes': [
                    models.Index(fields=['consultorio', 'start_time', 'end_time'], name='reservation_room_time_idx'),
                    models.Index(fields=['owner_id', 'start_time'], name='reservation_owner_time_idx'),
                    models.Index(fields=['recurrence_id', 'start_time'], name='reservation_series_idx'),
                    models.Index(fields=['status', 'start_time'], name='reservation_status_time_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(end_time__gt=models.F('start_time')), name='valid_reservation_times'),
                    models.CheckConstraint(condition=models.Q(models.Q(recurrence_end_date__isnull=True, recurrence_id__isnull=True), models.Q(recurrence_end_date__isnull=False, recurrence_id__isnull=False), _connector='OR'), name='recurrence_fields_together'),
                ],
            },
        ),
    ]
