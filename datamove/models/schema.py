"""Schema description models for objects and fields of an endpoint."""

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass
class FieldDescriptor:
    """Description of an object field on one endpoint."""
    name: str
    type: str = ""
    label: str = ""
    updateable: bool = False
    creatable: bool = False
    cascade_delete: bool = False
    auto_number: bool = False
    custom: bool = False
    calculated: bool = False
    is_reference: bool = False
    referenced_object_type: str = ""

    @property
    def is_formula(self) -> bool:
        return self.calculated

    @property
    def is_readonly(self) -> bool:
        """Field values cannot be written by a migration."""
        return not (self.creatable and not self.is_formula and not self.auto_number)

    @property
    def is_master_detail(self) -> bool:
        return self.is_reference and (not self.updateable or self.cascade_delete)

    @property
    def is_boolean(self) -> bool:
        return self.type == "boolean"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "type": self.type,
            "label": self.label,
            "updateable": self.updateable,
            "creatable": self.creatable,
            "cascade_delete": self.cascade_delete,
            "auto_number": self.auto_number,
            "custom": self.custom,
            "calculated": self.calculated,
            "is_reference": self.is_reference,
            "referenced_object_type": self.referenced_object_type,
        }

    @classmethod
    def from_describe(cls, data: Dict[str, Any]) -> "FieldDescriptor":
        """Create from a field entry of a describe response."""
        reference_to = data.get("referenceTo") or []
        field_type = data.get("type", "")
        return cls(
            name=data.get("name", ""),
            type=field_type,
            label=data.get("label", ""),
            updateable=data.get("updateable", False),
            creatable=data.get("createable", False),
            cascade_delete=data.get("cascadeDelete", False),
            auto_number=data.get("autoNumber", False),
            custom=data.get("custom", False),
            calculated=data.get("calculated", False),
            is_reference=field_type == "reference" or bool(reference_to),
            referenced_object_type=reference_to[0] if reference_to else "",
        )


@dataclass
class EntityDescriptor:
    """Coarse description of an object on one endpoint."""
    name: str = ""
    label: str = ""
    createable: bool = False
    updateable: bool = False
    custom: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "label": self.label,
            "createable": self.createable,
            "updateable": self.updateable,
            "custom": self.custom,
        }

    @classmethod
    def from_describe(cls, data: Dict[str, Any]) -> "EntityDescriptor":
        """Create from a describe response."""
        return cls(
            name=data.get("name", ""),
            label=data.get("label", ""),
            createable=data.get("createable", False),
            updateable=data.get("updateable", False),
            custom=data.get("custom", False),
        )


def parse_describe(data: Dict[str, Any]) -> Tuple[EntityDescriptor, Dict[str, FieldDescriptor]]:
    """
    Split a describe response into the object and its fields.

    Args:
        data: Describe response body

    Returns:
        Tuple of (EntityDescriptor, field name -> FieldDescriptor)
    """
    fields = {}
    for field_data in data.get("fields", []):
        descriptor = FieldDescriptor.from_describe(field_data)
        fields[descriptor.name] = descriptor
    return EntityDescriptor.from_describe(data), fields
