from django.urls import path
from . import views

urlpatterns = [
    path('health/', views.health, name='cron_health'),
    path('<str:job>/', views.trigger_job, name='cron_trigger'),
    path('<str:job>/status/', views.job_status, name='cron_job_status'),
]
