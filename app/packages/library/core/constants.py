"""常量定义：集中维护状态码、令牌类型与对象存储路径等固定值。"""

from fastapi import status

HTTP_STATUS_OK = status.HTTP_200_OK
HTTP_STATUS_CREATED = status.HTTP_201_CREATED
HTTP_STATUS_BAD_REQUEST = status.HTTP_400_BAD_REQUEST
HTTP_STATUS_UNAUTHORIZED = status.HTTP_401_UNAUTHORIZED
HTTP_STATUS_FORBIDDEN = status.HTTP_403_FORBIDDEN
HTTP_STATUS_NOT_FOUND = status.HTTP_404_NOT_FOUND
HTTP_STATUS_CONFLICT = status.HTTP_409_CONFLICT
HTTP_STATUS_INTERNAL_SERVER_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR
HTTP_STATUS_BAD_GATEWAY = status.HTTP_502_BAD_GATEWAY

ACCESS_TOKEN_TYPE = "bearer"

DEFAULT_ADMIN_NAME = "系统管理员"

# 对象存储中的路径前缀
BOOK_PAGE_PREFIX = "book-page/"
TEMP_PREFIX = "temp/"
AUDIO_PREFIX = "audio/"
HTML_LAYER_PREFIX = "html-layer/"

PDF_CONTENT_TYPE = "application/pdf"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"

ALLOWED_AUDIO_EXTENSIONS = ("mp3", "wav", "ogg", "aac", "m4a", "flac")

# 页面 UUID 必须为 v4 格式
UUID_V4_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"

CONTACT_NUMBER_PATTERN = r"^010-\d{4}-\d{4}$"

SSE_EVENT_CONNECTED = "connected"
SSE_EVENT_CONVERSION_COMPLETE = "conversion-complete"

AUDIO_MIME_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "flac": "audio/flac",
}

# S3 单次批量删除的对象上限
S3_DELETE_BATCH_SIZE = 1000

LOCAL_STORAGE_OBJECT_PATH = "/storage/objects"
