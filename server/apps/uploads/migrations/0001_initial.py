import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

_CATEGORY_CHOICES = [
    ('community_avatar', 'Community avatar'),
    ('community_banner', 'Community banner'),
    ('course_thumbnail', 'Course thumbnail'),
    ('module_thumbnail', 'Module thumbnail'),
    ('user_avatar', 'User avatar'),
    ('material_video', 'Material video'),
    ('material_file', 'Material file'),
    ('material_document', 'Material document'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UploadRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('original_name', models.CharField(help_text='File name as provided by the client', max_length=255)),
                ('file_name', models.CharField(help_text='Generated file name (last segment of the storage key)', max_length=255)),
                ('file_size', models.BigIntegerField(default=0, help_text='Size in bytes, 0 until the upload is completed')),
                ('content_type', models.CharField(help_text='Declared MIME type', max_length=100)),
                ('category', models.CharField(choices=_CATEGORY_CHOICES, db_index=True, max_length=32)),
                ('status', models.CharField(choices=[('uploading', 'Uploading'), ('completed', 'Completed'), ('failed', 'Failed'), ('deleted', 'Deleted')], db_index=True, default='uploading', max_length=32)),
                ('storage_bucket', models.CharField(max_length=100)),
                ('storage_key', models.CharField(db_index=True, help_text='Full object key: [public/|private/]{category}/{user}/...', max_length=500)),
                ('public_url', models.TextField(blank=True, default='', help_text='Set for public categories once completed')),
                ('presigned_url', models.TextField(blank=True, help_text='Signed PUT URL, present only while uploading', null=True)),
                ('presigned_expires_at', models.DateTimeField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('processing_info', models.JSONField(blank=True, default=dict)),
                ('community_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('course_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('module_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('material_id', models.UUIDField(blank=True, db_index=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('uploaded_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='uploads', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Upload',
                'verbose_name_plural': 'Uploads',
                'ordering': ['-created_at'],
                'base_manager_name': 'all_objects',
                'indexes': [
                    models.Index(fields=['uploaded_by', '-created_at'], name='uploads_uploader_recent_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(file_size__gte=0), name='uploads_file_size_non_negative'),
                    models.CheckConstraint(condition=models.Q(('file_size', 0), ('status__in', ['completed', 'deleted']), _connector='OR'), name='uploads_size_only_when_completed'),
                    models.CheckConstraint(condition=models.Q(('presigned_url__isnull', True), ('status', 'uploading'), _connector='OR'), name='uploads_presigned_only_while_uploading'),
                    models.CheckConstraint(condition=models.Q(('deleted_at__isnull', True), ('status', 'deleted'), _connector='OR'), name='uploads_deleted_at_implies_deleted'),
                    models.CheckConstraint(condition=models.Q(('public_url', ''), ('status', 'completed'), _connector='OR'), name='uploads_public_url_only_when_completed'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UploadSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('session_token', models.CharField(help_text='Unique session token', max_length=64, unique=True)),
                ('category', models.CharField(choices=_CATEGORY_CHOICES, max_length=32)),
                ('status', models.CharField(choices=[('uploading', 'Uploading'), ('completed', 'Completed')], db_index=True, default='uploading', max_length=32)),
                ('total_files', models.PositiveIntegerField()),
                ('completed_files', models.PositiveIntegerField(default=0)),
                ('failed_files', models.PositiveIntegerField(default=0)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('community_id', models.UUIDField(blank=True, null=True)),
                ('course_id', models.UUIDField(blank=True, null=True)),
                ('module_id', models.UUIDField(blank=True, null=True)),
                ('material_id', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('expires_at', models.DateTimeField(db_index=True, help_text='Fixed at creation; not enforced on read')),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='upload_sessions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Upload Session',
                'verbose_name_plural': 'Upload Sessions',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(total_files__gt=0), name='upload_sessions_total_positive'),
                    models.CheckConstraint(condition=models.Q(total_files__gte=models.F('completed_files') + models.F('failed_files')), name='upload_sessions_progress_within_total'),
                ],
            },
        ),
    ]
