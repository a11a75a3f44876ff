# -*- coding: utf-8 -*-
"""
头像等图片上传：启用 OSS 时上传阿里云 OSS 并返回签名 URL（私有读，防止泄漏）；
未启用时转成 data URL 直接交给后端保存。
凭据文件格式：accessKeyId xxx / accessKeySecret xxx；也可用环境变量覆盖。
"""
import base64
import logging
import os
import uuid
from pathlib import Path

import oss2
from django.conf import settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg": "jpg", "image/png": "png", "image/gif": "gif", "image/webp": "webp"}


class ImageUploadError(Exception):
    pass


def _load_credential(file_path):
    access_key_id = os.environ.get("ALIYUN_OSS_ACCESS_KEY_ID")
    access_key_secret = os.environ.get("ALIYUN_OSS_ACCESS_KEY_SECRET")
    if access_key_id and access_key_secret:
        return access_key_id, access_key_secret
    path = Path(file_path) if file_path else None
    if path and path.is_file():
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                parts = line.split(None, 1)
                if len(parts) < 2:
                    continue
                key, value = parts[0].strip(), parts[1].strip()
                if key == "accessKeyId":
                    access_key_id = value
                elif key == "accessKeySecret":
                    access_key_secret = value
    return access_key_id, access_key_secret


def validate_image(file_obj):
    """校验类型与大小（默认 2MB），返回扩展名"""
    content_type = (getattr(file_obj, "content_type", "") or "").lower()
    ext = ALLOWED_CONTENT_TYPES.get(content_type)
    if not ext:
        raise ImageUploadError("Only JPG, PNG, GIF or WEBP images are allowed")
    max_bytes = settings.PROFILE_IMAGE_MAX_BYTES
    if file_obj.size > max_bytes:
        raise ImageUploadError(f"Image too large (max {max_bytes // (1024 * 1024)}MB)")
    return ext


def _to_data_url(file_obj):
    data = b"".join(file_obj.chunks())
    return f"data:{file_obj.content_type};base64,{base64.b64encode(data).decode('ascii')}"


def upload_file_to_oss(file_obj, object_name):
    """上传 Django UploadedFile，返回签名 URL"""
    access_key_id, access_key_secret = _load_credential(settings.ALIYUN_OSS_CREDENTIAL_FILE)
    if not access_key_id or not access_key_secret:
        raise ImageUploadError("OSS credentials are not configured")
    endpoint = settings.ALIYUN_OSS_ENDPOINT
    if not endpoint.startswith("http"):
        endpoint = f"https://{endpoint}"
    bucket = oss2.Bucket(oss2.Auth(access_key_id, access_key_secret), endpoint, settings.ALIYUN_OSS_BUCKET)
    try:
        bucket.put_object(object_name, b"".join(file_obj.chunks()))
        return bucket.sign_url("GET", object_name, settings.ALIYUN_OSS_SIGNED_URL_EXPIRES)
    except oss2.exceptions.OssError as e:
        logger.exception("OSS 上传失败: %s", e)
        raise ImageUploadError("Image upload failed") from e


def upload_image(file_obj, prefix="admin"):
    """校验后上传，返回可直接写入 imageUrl / profilePicture 的地址"""
    ext = validate_image(file_obj)
    if not settings.ALIYUN_OSS_ENABLED:
        return _to_data_url(file_obj)
    object_name = f"{settings.ALIYUN_OSS_PREFIX}/{prefix}/{uuid.uuid4().hex}.{ext}"
    return upload_file_to_oss(file_obj, object_name)
