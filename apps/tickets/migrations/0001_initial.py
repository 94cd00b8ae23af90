import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations
from django.db import models

import apps.tickets.models.ticket


def audit_fields():
    return [
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
        (
            'created_by',
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='+',
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        (
            'updated_by',
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='+',
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        (
            'deleted_by',
            models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='+',
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('events', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TicketType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                (
                    'type',
                    models.CharField(
                        choices=[('free', 'Free'), ('paid', 'Paid'), ('donation', 'Donation')],
                        default='free',
                        max_length=20,
                        verbose_name='Type',
                    ),
                ),
                (
                    'quantity',
                    models.PositiveIntegerField(default=0, help_text='0 means unlimited', verbose_name='Quantity'),
                ),
                ('price', models.DecimalField(decimal_places=2, default=0, max_digits=10, verbose_name='Price')),
                ('currency', models.CharField(default='EUR', max_length=3, verbose_name='Currency')),
                ('available_from', models.DateTimeField(blank=True, null=True, verbose_name='Available From')),
                ('available_to', models.DateTimeField(blank=True, null=True, verbose_name='Available To')),
                (
                    'event',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='ticket_types',
                        to='events.event',
                        verbose_name='Event',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Ticket Type',
                'verbose_name_plural': 'Ticket Types',
                'db_table': 'ticket_types',
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('price__gte', 0)),
                        name='ticket_types_price_non_negative',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='TicketTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('preview_url', models.URLField(blank=True, default='', max_length=500, verbose_name='Preview URL')),
                ('source_files_path', models.CharField(max_length=500, verbose_name='Source Files Path')),
                ('is_customizable', models.BooleanField(default=False, verbose_name='Is Customizable')),
            ],
            options={
                'verbose_name': 'Ticket Template',
                'verbose_name_plural': 'Ticket Templates',
                'db_table': 'ticket_templates',
            },
        ),
        migrations.CreateModel(
            name='Ticket',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                (
                    'ticket_code',
                    models.CharField(
                        default=apps.tickets.models.ticket.generate_ticket_code,
                        max_length=64,
                        unique=True,
                        verbose_name='Ticket Code',
                    ),
                ),
                ('qr_code_data', models.TextField(blank=True, default='', verbose_name='QR Code Data')),
                ('price', models.DecimalField(decimal_places=2, default=0, max_digits=10, verbose_name='Price')),
                ('currency', models.CharField(default='EUR', max_length=3, verbose_name='Currency')),
                ('is_validated', models.BooleanField(db_index=True, default=False, verbose_name='Is Validated')),
                ('validated_at', models.DateTimeField(blank=True, null=True, verbose_name='Validated At')),
                (
                    'ticket_file_url',
                    models.CharField(blank=True, default='', max_length=1000, verbose_name='Ticket File URL'),
                ),
                ('generated_at', models.DateTimeField(blank=True, null=True, verbose_name='Generated At')),
                (
                    'event_guest',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='tickets',
                        to='events.eventguest',
                        verbose_name='Event Guest',
                    ),
                ),
                (
                    'ticket_template',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='tickets',
                        to='tickets.tickettemplate',
                        verbose_name='Ticket Template',
                    ),
                ),
                (
                    'ticket_type',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name='tickets',
                        to='tickets.tickettype',
                        verbose_name='Ticket Type',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Ticket',
                'verbose_name_plural': 'Tickets',
                'db_table': 'tickets',
                'indexes': [
                    models.Index(fields=['event_guest', 'is_validated'], name='tickets_guest_validated_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TicketGenerationJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                ('uid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name='Job UID')),
                (
                    'status',
                    models.CharField(
                        choices=[
                            ('pending', 'Pending'),
                            ('processing', 'Processing'),
                            ('completed', 'Completed'),
                            ('failed', 'Failed'),
                        ],
                        db_index=True,
                        default='pending',
                        max_length=20,
                        verbose_name='Status',
                    ),
                ),
                ('tickets_count', models.PositiveIntegerField(default=0, verbose_name='Tickets Count')),
                ('tickets_processed', models.PositiveIntegerField(default=0, verbose_name='Tickets Processed')),
                ('details', models.JSONField(blank=True, default=dict, verbose_name='Details')),
                ('error_message', models.TextField(blank=True, default='', verbose_name='Error Message')),
                ('started_at', models.DateTimeField(blank=True, null=True, verbose_name='Started At')),
                ('completed_at', models.DateTimeField(blank=True, null=True, verbose_name='Completed At')),
                (
                    'event',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='generation_jobs',
                        to='events.event',
                        verbose_name='Event',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Ticket Generation Job',
                'verbose_name_plural': 'Ticket Generation Jobs',
                'db_table': 'ticket_generation_jobs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['event', 'status'], name='generation_jobs_event_idx'),
                    models.Index(fields=['status', 'created_at'], name='generation_jobs_status_idx'),
                ],
            },
        ),
    ]
