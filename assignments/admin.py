from django.contrib import admin
from .models import Task, UserTaskStatus


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'subject', 'deadline', 'submission_method', 'is_important', 'is_for_all', 'created_by']
    list_filter = ['is_important', 'is_for_all', 'submission_method', 'subject']
    search_fields = ['title', 'subject', 'description']
    ordering = ['deadline']
    raw_id_fields = ['created_by']


@admin.register(UserTaskStatus)
class UserTaskStatusAdmin(admin.ModelAdmin):
    list_display = ['task', 'user', 'is_completed', 'updated_at']
    list_filter = ['is_completed']
    search_fields = ['task__title', 'user__student_id']
    raw_id_fields = ['task', 'user']
