"""
URL configuration for the studyboard project.

Every app exposes JSON endpoints; the browser client renders them.
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("accounts/", include("accounts.urls")),
    path("tasks/", include("assignments.urls")),
    path("events/", include("events.urls")),
    path("tests/", include("exams.urls")),
    path("", include("planner.urls")),
]
