from django.contrib import admin
from .models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'date_time', 'venue', 'is_important', 'is_for_all', 'created_by']
    list_filter = ['is_important', 'is_for_all']
    search_fields = ['title', 'venue', 'description']
    ordering = ['-date_time']
    raw_id_fields = ['created_by']
