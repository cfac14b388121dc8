from django.contrib import admin
from .models import Exam, ExamNotification


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ['subject', 'test_date', 'teacher', 'is_important', 'created_by']
    list_filter = ['is_important', 'subject']
    search_fields = ['subject', 'scope', 'teacher']
    ordering = ['-test_date']
    raw_id_fields = ['related_task', 'created_by']


@admin.register(ExamNotification)
class ExamNotificationAdmin(admin.ModelAdmin):
    list_display = ['test', 'user', 'is_notification_enabled', 'updated_at']
    list_filter = ['is_notification_enabled']
    raw_id_fields = ['test', 'user']
