from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import FileExtensionValidator


def validate_upload_size(file):
    limit = settings.UPLOAD_MAX_SIZE
    if file.size > limit:
        raise ValidationError(f"File too large, max size is {limit // (1024 * 1024)}MB.")


# 图片或 PDF：海报、收据、证书
upload_validators = [
    FileExtensionValidator(allowed_extensions=settings.UPLOAD_ALLOWED_EXTENSIONS),
    validate_upload_size,
]
