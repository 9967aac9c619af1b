from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

PricingModel = Literal["free", "paid", "bundle"]

PRICING_MODELS: tuple[PricingModel, ...] = ("free", "paid", "bundle")


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    name: str
    pricing_model: PricingModel = "free"

    def __post_init__(self) -> None:
        if self.pricing_model not in PRICING_MODELS:
            raise ValueError(f"unknown pricing model {self.pricing_model!r}")

    def to_item(self) -> dict[str, Any]:
        return {
            "entityType": "COURSE",
            "courseId": self.id,
            "name": self.name,
            "pricingModel": self.pricing_model,
        }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> Course:
        return cls(
            id=item["courseId"],
            name=item["name"],
            pricing_model=item.get("pricingModel", "free"),
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    """A single video lesson.

    video_key is the object key under the CDN domain
    (e.g. "courses/intro/lesson-1.mp4").  It is internal: listing endpoints
    never return it; clients get a signed URL instead.
    """

    id: str
    course_id: str
    title: str
    order: int
    video_key: str
    description: str | None = None
    length_in_mins: int | None = None
    hls_manifest_key: str | None = None

    def to_item(self) -> dict[str, Any]:
        item: dict[str, Any] = {
            "entityType": "LESSON",
            "lessonId": self.id,
            "courseId": self.course_id,
            "title": self.title,
            "order": self.order,
            "videoKey": self.video_key,
        }
        if self.description is not None:
            item["description"] = self.description
        if self.length_in_mins is not None:
            item["lengthInMins"] = self.length_in_mins
        if self.hls_manifest_key is not None:
            item["hlsManifestKey"] = self.hls_manifest_key
        return item

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> Lesson:
        return cls(
            id=item["lessonId"],
            course_id=item["courseId"],
            title=item["title"],
            order=int(item["order"]),
            video_key=item["videoKey"],
            description=item.get("description"),
            length_in_mins=item.get("lengthInMins"),
            hls_manifest_key=item.get("hlsManifestKey"),
        )
