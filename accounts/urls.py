from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    path('signup/', views.signup, name='signup'),
    path('signin/', views.signin, name='signin'),
    path('session/', views.resume_session, name='resume_session'),
    path('signout/', views.signout, name='signout'),
    path('settings/', views.account_settings, name='settings'),
    path('lookup/', views.lookup_by_student_id, name='lookup'),
    path('users/', views.list_users, name='list_users'),
]
