import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('venue', models.CharField(blank=True, default='', max_length=255)),
                ('duration', models.CharField(blank=True, default='', max_length=100)),
                ('date_time', models.DateTimeField(db_index=True)),
                ('description', models.TextField(blank=True, default='')),
                ('items', models.TextField(blank=True, default='')),
                ('is_important', models.BooleanField(default=False)),
                ('is_for_all', models.BooleanField(default=False)),
                ('assigned_to', models.JSONField(blank=True, default=list)),
                ('assigned_user_id', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, db_column='created_by', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_events', to='accounts.student')),
            ],
            options={
                'db_table': 'events',
                'ordering': ['date_time'],
            },
        ),
    ]
