from typing import Dict, Iterable, Optional
from sqlmodel import Session, select
from app.models.image import Image
from app.core.errors import ImageNotFound
from app.db.session import commit_or_fail

class ImageService:
    def __init__(self, session: Session):
        self.session = session

    def get_image(self, image_id: str) -> Image:
        image = self.session.get(Image, image_id)
        if not image:
            raise ImageNotFound()
        return image

    def register_image(self, uploaded_by: Optional[int], **metadata) -> Image:
        image = Image(uploaded_by=uploaded_by, **metadata)
        self.session.add(image)
        commit_or_fail(self.session, "register image")
        self.session.refresh(image)
        return image

    def resolve(self, image_ids: Iterable) -> Dict[str, Image]:
        """Map the given ids to their images; unknown ids are left out."""
        ids = {str(image_id) for image_id in image_ids if image_id}
        if not ids:
            return {}
        images = self.session.exec(select(Image).where(Image.id.in_(ids))).all()
        return {image.id: image for image in images}
