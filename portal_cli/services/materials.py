import base64
from typing import List

from portal_cli.db.store import KeyValueStore
from portal_cli.models import Material, User
from portal_cli.services.registry import AcademicRegistry
from portal_cli.utils.ids import new_id, now
from portal_cli.utils.logging_config import get_logger

logger = get_logger(__name__)


def encode_payload(content: bytes) -> str:
    """Base64 text suitable for the ``data`` field of a material."""
    return base64.b64encode(content).decode("ascii")


class MaterialsRepository:
    """Course materials: file metadata plus the file content as base64 text."""

    def __init__(self, store: KeyValueStore, registry: AcademicRegistry):
        self.store = store
        self.registry = registry

    def get_materials(self) -> List[Material]:
        return [Material.from_record(r) for r in self.store.read(Material.collection)]

    def get_materials_for_course(self, course_id: str) -> List[Material]:
        return [m for m in self.get_materials() if m.course_id == course_id]

    def get_materials_for_student(self, student_id: str) -> List[Material]:
        """Materials of the courses the student is enrolled in."""
        enrolled = {
            e.course_id for e in self.registry.get_enrollments_for_student(student_id)
        }
        return [m for m in self.get_materials() if m.course_id in enrolled]

    def upload_material(
        self,
        course_id: str,
        title: str,
        type: str,
        filename: str,
        data: str,
        size: int,
        uploaded_by: User,
    ) -> Material:
        material = Material(
            id=new_id(),
            course_id=course_id,
            title=title,
            type=type,
            filename=filename,
            data=data,
            size=size,
            uploaded_by=uploaded_by.id,
            uploader_name=uploaded_by.name,
            uploaded_at=now(),
        )
        materials = self.store.read(Material.collection)
        materials.append(material.to_record())
        self.store.write(Material.collection, materials)
        logger.info(f"{uploaded_by.name} uploaded '{filename}' to course {course_id}")
        return material

    def delete_material(self, material_id: str) -> None:
        materials = self.store.read(Material.collection)
        remaining = [m for m in materials if m.get("id") != material_id]
        self.store.write(Material.collection, remaining)
        if len(remaining) != len(materials):
            logger.info(f"Deleted material {material_id}")
