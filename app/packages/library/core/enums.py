"""枚举定义：约束教材类型、用户角色与上传状态的可选值。"""

from enum import Enum


class MaterialTypeEnum(str, Enum):
    """教材树节点类型：`category` 为文件夹，`book` 为教材。"""

    CATEGORY = "category"
    BOOK = "book"


class UserRoleEnum(str, Enum):
    SYSTEM_ADMIN = "system_admin"
    ACADEMY_ADMIN = "academy_admin"
    INSTRUCTOR = "instructor"


class PdfUploadStatusEnum(str, Enum):
    """PDF 上传会话状态。"""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
