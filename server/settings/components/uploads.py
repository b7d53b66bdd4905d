"""Upload lifecycle settings."""

from server.settings.components import config

# Single bucket used when no public/private split is configured
UPLOADS_BUCKET = config('AWS_STORAGE_BUCKET_NAME', default='uploads')

# Optional bucket split: both must be set to route by visibility
UPLOADS_PUBLIC_BUCKET = config('UPLOADS_PUBLIC_BUCKET', default='')
UPLOADS_PRIVATE_BUCKET = config('UPLOADS_PRIVATE_BUCKET', default='')

# Public URLs: custom domain, or a host derived from the bucket name
UPLOADS_PUBLIC_DOMAIN = config('UPLOADS_PUBLIC_DOMAIN', default='')
UPLOADS_DEFAULT_HOST_TEMPLATE = config(
    'UPLOADS_DEFAULT_HOST_TEMPLATE',
    default='https://{bucket}.r2.cloudflarestorage.com',
)

# Presigned URL lifetime bounds, in seconds
UPLOADS_DEFAULT_EXPIRY_SECONDS = config(
    'UPLOADS_DEFAULT_EXPIRY_SECONDS',
    cast=int,
    default=3600,
)
UPLOADS_MIN_EXPIRY_SECONDS = config(
    'UPLOADS_MIN_EXPIRY_SECONDS',
    cast=int,
    default=60,
)
UPLOADS_MAX_EXPIRY_SECONDS = config(
    'UPLOADS_MAX_EXPIRY_SECONDS',
    cast=int,
    default=7 * 24 * 3600,
)

# Batch upload sessions
UPLOADS_SESSION_TTL_HOURS = config(
    'UPLOADS_SESSION_TTL_HOURS',
    cast=int,
    default=24,
)

# Extra time past presigned expiry before an upload is reported as stale
UPLOADS_STALE_GRACE_SECONDS = config(
    'UPLOADS_STALE_GRACE_SECONDS',
    cast=int,
    default=0,
)
