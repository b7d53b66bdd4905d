"""URL routes for uploads app."""

from django.urls import path

from server.apps.uploads import views

app_name = 'uploads'

urlpatterns = [
    path('validation-rules/', views.validation_rules, name='validation-rules'),
    path(
        'max-file-size/<str:category>/',
        views.max_file_size,
        name='max-file-size',
    ),
    path('presigned-url/', views.presigned_url, name='presigned-url'),
    path('sessions/', views.create_session, name='create-session'),
    path(
        'sessions/<str:session_token>/',
        views.session_detail,
        name='session-detail',
    ),
    path('stats/', views.upload_stats, name='stats'),
    path('<str:upload_id>/complete/', views.complete_upload, name='complete'),
    path('<str:upload_id>/fail/', views.fail_upload, name='fail'),
    path('<str:upload_id>/download/', views.download_url, name='download'),
    path('<str:upload_id>/', views.upload_detail, name='detail'),
]
