import django.db.models.deletion
import django.db.models.functions.text
from django.conf import settings
from django.db import migrations
from django.db import models

import apps.events.models.event_guest


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
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('event_date', models.DateTimeField(blank=True, db_index=True, null=True, verbose_name='Event Date')),
                ('location', models.CharField(blank=True, default='', max_length=255, verbose_name='Location')),
                (
                    'status',
                    models.CharField(
                        choices=[('draft', 'Draft'), ('published', 'Published'), ('archived', 'Archived')],
                        db_index=True,
                        default='draft',
                        max_length=20,
                        verbose_name='Status',
                    ),
                ),
                (
                    'max_attendees',
                    models.PositiveIntegerField(
                        blank=True,
                        help_text='Upper bound of validated tickets; empty means unlimited',
                        null=True,
                        verbose_name='Max Attendees',
                    ),
                ),
                (
                    'organizer',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name='organized_events',
                        to=settings.AUTH_USER_MODEL,
                        verbose_name='Organizer',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Event',
                'verbose_name_plural': 'Events',
                'db_table': 'events',
                'ordering': ['-event_date', 'title'],
                'indexes': [
                    models.Index(fields=['organizer', 'status'], name='events_organizer_status_idx'),
                    models.Index(fields=['status', 'event_date'], name='events_status_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Guest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                ('first_name', models.CharField(max_length=150, verbose_name='First Name')),
                ('last_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Last Name')),
                ('email', models.EmailField(blank=True, max_length=254, null=True, verbose_name='Email')),
                ('phone', models.CharField(blank=True, default='', max_length=32, verbose_name='Phone')),
            ],
            options={
                'verbose_name': 'Guest',
                'verbose_name_plural': 'Guests',
                'db_table': 'guests',
                'ordering': ['last_name', 'first_name'],
                'constraints': [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower('email'),
                        condition=models.Q(('deleted_at__isnull', True), ('email__isnull', False)),
                        name='guests_email_ci_unique',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='EventGuest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *audit_fields(),
                (
                    'invitation_code',
                    models.CharField(
                        default=apps.events.models.event_guest.generate_invitation_code,
                        max_length=64,
                        unique=True,
                        verbose_name='Invitation Code',
                    ),
                ),
                (
                    'status',
                    models.CharField(
                        choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')],
                        default='pending',
                        max_length=20,
                        verbose_name='Status',
                    ),
                ),
                ('is_present', models.BooleanField(default=False, verbose_name='Is Present')),
                ('check_in_time', models.DateTimeField(blank=True, null=True, verbose_name='Check-in Time')),
                (
                    'event',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='event_guests',
                        to='events.event',
                        verbose_name='Event',
                    ),
                ),
                (
                    'guest',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='event_guests',
                        to='events.guest',
                        verbose_name='Guest',
                    ),
                ),
            ],
            options={
                'verbose_name': 'Event Guest',
                'verbose_name_plural': 'Event Guests',
                'db_table': 'event_guests',
                'indexes': [models.Index(fields=['event', 'status'], name='event_guests_status_idx')],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('deleted_at__isnull', True)),
                        fields=('event', 'guest'),
                        name='event_guests_event_guest_unique',
                    ),
                ],
            },
        ),
    ]
