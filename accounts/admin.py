from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['student_id', 'name', 'email', 'notification_days', 'created_at']
    search_fields = ['student_id', 'name', 'email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    ordering = ['student_id']
