from django.urls import path
from . import views

app_name = 'exams'

urlpatterns = [
    path('', views.exam_list, name='exam_list'),
    path('create/', views.create_exam, name='create_exam'),
    path('<uuid:exam_id>/', views.exam_detail, name='exam_detail'),
    path('<uuid:exam_id>/notification/', views.set_exam_notification, name='set_exam_notification'),
]
