import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations
from django.db import models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('events', '0001_initial'),
        ('tickets', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ScanLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('ticket_code', models.CharField(db_index=True, max_length=64, verbose_name='Ticket Code')),
                (
                    'scan_time',
                    models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Scan Time'),
                ),
                ('scan_context', models.JSONField(blank=True, default=dict, verbose_name='Scan Context')),
                (
                    'result',
                    models.CharField(
                        choices=[('valid', 'Valid'), ('invalid', 'Invalid')],
                        max_length=10,
                        verbose_name='Result',
                    ),
                ),
                ('result_code', models.CharField(max_length=64, verbose_name='Result Code')),
                (
                    'fraud_risk_level',
                    models.CharField(blank=True, default='', max_length=16, verbose_name='Fraud Risk Level'),
                ),
                (
                    'event',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='scan_logs',
                        to='events.event',
                        verbose_name='Event',
                    ),
                ),
                (
                    'operator',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='scan_logs',
                        to=settings.AUTH_USER_MODEL,
                        verbose_name='Operator',
                    ),
                ),
                (
                    'ticket',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='scan_logs',
                        to='tickets.ticket',
                        verbose_name='Ticket',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Scan Log',
                'verbose_name_plural': 'Scan Logs',
                'db_table': 'scan_logs',
                'ordering': ['-scan_time'],
                'indexes': [
                    models.Index(fields=['event', 'scan_time'], name='scan_logs_event_time_idx'),
                    models.Index(fields=['ticket', 'scan_time'], name='scan_logs_ticket_time_idx'),
                ],
            },
        ),
    ]
