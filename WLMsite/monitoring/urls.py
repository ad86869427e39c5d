from django.urls import path
from . import views

urlpatterns = [
    path('', views.landing_page_view, name='landing'),
    path('login/', views.login_view, name='login'),
    path('logout/', views.logout_view, name='logout'),
    path('home/', views.home_page_view, name='home'),
    path('dashboard/', views.dashboard_view, name='dashboard'),
    path('entry/water-level/', views.water_level_entry_view, name='water_level_entry'),
    path('entry/rainfall/', views.rainfall_entry_view, name='rainfall_entry'),
    path('reports/hourly/', views.hourly_reports_view, name='hourly_reports'),
    path('reports/hourly/<str:kind>/export/', views.export_hourly_report_view, name='export_hourly_report'),
    path('reports/', views.reports_view, name='reports'),
    path('api/locations/', views.api_locations, name='api_locations'),
    path('api/level-status/', views.api_level_status, name='api_level_status'),
    path('api/reports/hourly/<str:kind>/', views.api_hourly_report, name='api_hourly_report'),
]
