import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
        ('assignments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Exam',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('subject', models.CharField(max_length=100)),
                ('test_date', models.DateTimeField(db_index=True)),
                ('scope', models.TextField(blank=True, default='')),
                ('teacher', models.CharField(blank=True, default='', max_length=100)),
                ('is_important', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, db_column='created_by', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_tests', to='accounts.student')),
                ('related_task', models.ForeignKey(blank=True, db_column='related_task_id', db_constraint=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='related_tests', to='assignments.task')),
            ],
            options={
                'db_table': 'tests',
                'ordering': ['test_date'],
            },
        ),
        migrations.CreateModel(
            name='ExamNotification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_notification_enabled', models.BooleanField(default=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('test', models.ForeignKey(db_column='test_id', on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='exams.exam')),
                ('user', models.ForeignKey(db_column='user_id', on_delete=django.db.models.deletion.CASCADE, related_name='test_notifications', to='accounts.student')),
            ],
            options={
                'db_table': 'test_notifications',
                'constraints': [models.UniqueConstraint(fields=('user', 'test'), name='unique_test_notification')],
            },
        ),
    ]
