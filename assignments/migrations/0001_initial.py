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
            name='Task',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('subject', models.CharField(max_length=100)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True, default='')),
                ('deadline', models.DateTimeField(blank=True, null=True)),
                ('submission_method', models.CharField(choices=[('google_classroom', 'Google Classroom'), ('teams', 'Teams'), ('moodle', 'Moodle'), ('paper', '紙（対面）'), ('other', 'その他')], default='google_classroom', max_length=32)),
                ('is_important', models.BooleanField(default=False)),
                ('is_for_all', models.BooleanField(default=False)),
                ('assigned_to', models.JSONField(blank=True, default=list)),
                ('assigned_user_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, db_column='created_by', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_tasks', to='accounts.student')),
            ],
            options={
                'db_table': 'tasks',
                'ordering': ['deadline', '-created_at'],
                'indexes': [models.Index(fields=['deadline'], name='tasks_deadline_idx')],
            },
        ),
        migrations.CreateModel(
            name='UserTaskStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_completed', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('task', models.ForeignKey(db_column='task_id', on_delete=django.db.models.deletion.CASCADE, related_name='statuses', to='assignments.task')),
                ('user', models.ForeignKey(db_column='user_id', on_delete=django.db.models.deletion.CASCADE, related_name='task_statuses', to='accounts.student')),
            ],
            options={
                'db_table': 'user_task_status',
                'constraints': [models.UniqueConstraint(fields=('user', 'task'), name='unique_user_task_status')],
            },
        ),
    ]
