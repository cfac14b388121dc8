from django.urls import path
from . import views

app_name = 'planner'

urlpatterns = [
    path('dashboard/', views.dashboard, name='dashboard'),
    path('calendar/', views.calendar_month, name='calendar_month'),
    path('calendar/<str:day>/', views.calendar_day, name='calendar_day'),
]
