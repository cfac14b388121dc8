from django.urls import path
from . import views

app_name = 'assignments'

urlpatterns = [
    path('', views.task_list, name='task_list'),
    path('create/', views.create_task, name='create_task'),
    path('<uuid:task_id>/', views.task_detail, name='task_detail'),
    path('<uuid:task_id>/status/', views.set_task_status, name='set_task_status'),
]
