"""
Error taxonomy shared by services and routers.

Every error is an ``HTTPException`` carrying a machine-readable ``code``;
``app.main`` renders them as ``{"success": false, "error": ..., "code": ...}``.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    code = "AppError"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Request rejected"

    def __init__(self, message: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.message,
            headers=headers,
        )


# Auth
class Unauthorized(AppError):
    code = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"

    def __init__(self, message: str = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have permission to perform this action"


# Missing entities
class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class PostNotFound(NotFound):
    code = "PostNotFound"
    message = "Post not found"


class BlockNotFound(NotFound):
    code = "BlockNotFound"
    message = "Block not found"


class ImageNotFound(NotFound):
    code = "ImageNotFound"
    message = "Image not found"


class UserNotFound(NotFound):
    code = "UserNotFound"
    message = "User not found"


class ProjectNotFound(NotFound):
    code = "ProjectNotFound"
    message = "Project not found"


class ContributorNotFound(NotFound):
    code = "ContributorNotFound"
    message = "Contributor not found in this project"


class CertificateNotFound(NotFound):
    code = "CertificateNotFound"
    message = "Certificate not found"


# Block payloads
class InvalidBlockType(AppError):
    code = "InvalidBlockType"
    message = "Invalid block type"


class TextBlockInvalid(AppError):
    code = "TextBlockInvalid"
    message = "Text block requires html and word_count"


class TextTooLong(AppError):
    code = "TextTooLong"
    message = "Text block cannot exceed 800 words"


class QuoteBlockInvalid(AppError):
    code = "QuoteBlockInvalid"
    message = "Quote block requires quote text"


class ImageBlockInvalid(AppError):
    code = "ImageBlockInvalid"
    message = "Image block requires image_id"


class YoutubeBlockInvalid(AppError):
    code = "YoutubeBlockInvalid"
    message = "YouTube block requires youtube_url and video_id"


# Block collection
class TooManyBlocks(AppError):
    code = "TooManyBlocks"
    message = "Maximum 15 blocks allowed per post"


class TooManyImageBlocks(AppError):
    code = "TooManyImageBlocks"
    message = "Maximum 5 image blocks allowed per post"


class ConsecutiveTextBlocks(AppError):
    code = "ConsecutiveTextBlocks"
    message = "Cannot add consecutive text blocks. Please insert a different block type between text blocks."


# Other validation
class InvalidPostField(AppError):
    code = "InvalidPostField"


class InvalidUserField(AppError):
    code = "InvalidUserField"


class InvalidProjectField(AppError):
    code = "InvalidProjectField"


class InvalidContribution(AppError):
    code = "InvalidContribution"
    message = "Contribution percentage must be between 0 and 100"


class ContributionOverflow(AppError):
    code = "ContributionOverflow"
    message = "Total contribution percentage would exceed 100%"


class DuplicateContributor(AppError):
    code = "DuplicateContributor"
    message = "User is already a contributor to this project"


class CannotRemoveCreator(AppError):
    code = "CannotRemoveCreator"
    message = "Cannot remove project creator from contributors"


class InvalidCertificate(AppError):
    code = "InvalidCertificate"


class DuplicateCertificate(AppError):
    code = "DuplicateCertificate"
    message = "Certificate ID already exists"


class EmailAlreadyRegistered(AppError):
    code = "EmailAlreadyRegistered"
    message = "Email already registered"


# Store
class PersistenceFailure(AppError):
    code = "PersistenceFailure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error"
