"""Field sampler — generates one synthetic value per canonical field.

Each sampler owns its random streams (a numpy Generator, a random.Random and
a Faker instance) seeded from a single seed, so two samplers built with the
same seed produce the same values and never share state.
"""

from __future__ import annotations

import random
import string
from datetime import timedelta
from typing import Any, Optional

import numpy as np
from faker import Faker

from schema_synth.config.settings import SynthConfig, get_config
from schema_synth.schema.model import FieldDefinition, FieldKind, check_invariants

INDUSTRIES = (
    "Software", "Retail", "Logistics", "Healthcare", "Finance",
    "Manufacturing", "Energy", "Education", "Media", "Hospitality",
)
DEPARTMENTS = (
    "Books", "Electronics", "Garden", "Grocery", "Home",
    "Outdoors", "Sports", "Tools", "Toys", "Clothing",
)
PRODUCT_NOUNS = ("Chair", "Table", "Lamp", "Keyboard", "Backpack", "Bottle", "Jacket", "Watch")
TRANSACTION_TYPES = ("payment", "invoice", "deposit", "withdrawal", "refund")


class FieldSampler:
    """Generates values for canonical fields from explicitly seeded streams.

    Bounds missing on a field fall back to the active SynthConfig
    (string length 5-10, numbers 0-1000, arrays of 1-5 items).
    """

    def __init__(self, seed: Optional[int] = None, config: Optional[SynthConfig] = None):
        self.seed = seed
        self.config = config or get_config()
        self.rng = np.random.default_rng(seed)
        self.py_rng = random.Random(seed)
        self.faker = Faker(self.config.faker_locale)
        if seed is not None:
            self.faker.seed_instance(seed)
        self._date_start, self._date_end = self.config.date_window

    def generate(self, kind: Any = FieldKind.STRING, options: Optional[dict] = None) -> Any:
        """Generate a value for ``kind`` configured by wire-style ``options``.

        Arrays without ``items`` default to string elements and objects
        without ``properties`` to an empty mapping.
        """
        data = dict(options or {})
        data["kind"] = kind
        coerced = FieldKind.coerce(kind)
        if coerced == FieldKind.ARRAY:
            data.setdefault("items", {"kind": FieldKind.STRING.value})
        elif coerced == FieldKind.OBJECT:
            data.setdefault("properties", {})
        return self.generate_field(FieldDefinition.from_dict(data.get("name", "value"), data))

    def generate_field(self, fd: FieldDefinition) -> Any:
        """Generate a value for a canonical field.

        Raises:
            StructuralViolation: if the field breaks a model invariant.
        """
        check_invariants(fd)
        kind = fd.kind
        if kind == FieldKind.NUMBER:
            return self._sample_number(fd)
        if kind == FieldKind.INTEGER:
            return self._sample_integer(fd)
        if kind == FieldKind.BOOLEAN:
            return bool(self.rng.integers(0, 2))
        if kind == FieldKind.ARRAY:
            return self._sample_array(fd)
        if kind == FieldKind.OBJECT:
            return {name: self.generate_field(prop) for name, prop in fd.properties.items()}
        if kind == FieldKind.ENUM:
            return fd.values[int(self.rng.integers(0, len(fd.values)))]
        if kind == FieldKind.DOMAIN_COMPOSITE:
            return self._sample_composite(fd.format or "address")
        if kind == FieldKind.REFERENCE:
            return fd.default if fd.default is not None else self.faker.uuid4()
        # string, and any kind outside the closed set
        return self._sample_string(fd)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _bounds(self, fd: FieldDefinition, default_min: float, default_max: float) -> tuple[float, float]:
        """Field bounds, with a missing side defaulted so it never crosses the given one."""
        high = fd.max if fd.max is not None else max(default_max, fd.min if fd.min is not None else default_max)
        low = fd.min if fd.min is not None else min(default_min, high)
        return low, high

    def _sample_number(self, fd: FieldDefinition) -> float:
        low, high = self._bounds(fd, self.config.number_min, self.config.number_max)
        digits = fd.scale if fd.scale is not None else (fd.precision or 0)
        return round(float(self.rng.uniform(low, high)), digits)

    def _sample_integer(self, fd: FieldDefinition) -> int:
        low, high = self._bounds(fd, self.config.number_min, self.config.number_max)
        low, high = int(np.ceil(low)), int(np.floor(high))
        if low > high:
            # Fractional bounds with no integer between them
            return low
        return int(self.rng.integers(low, high + 1))

    def _sample_string(self, fd: FieldDefinition) -> str:
        value = self._sample_format(fd.format) if fd.format else None
        if value is not None:
            return value

        low, high = self._bounds(fd, self.config.string_min_length, self.config.string_max_length)
        min_len, max_len = max(0, int(low)), max(0, int(high))
        length = self.py_rng.randint(min_len, max(min_len, max_len))
        return "".join(self.py_rng.choices(string.ascii_letters, k=length))

    def _sample_format(self, fmt: str) -> Optional[str]:
        """Value for a known string format, or None to fall back to plain text."""
        fake = self.faker
        if fmt == "email":
            return fake.email()
        if fmt == "url":
            return fake.url()
        if fmt == "uuid":
            return fake.uuid4()
        if fmt == "phone":
            return fake.phone_number()
        if fmt == "date":
            return self._sample_date()
        if fmt == "datetime":
            return self._sample_datetime()
        if fmt == "name":
            return fake.name()
        if fmt == "firstName":
            return fake.first_name()
        if fmt == "lastName":
            return fake.last_name()
        if fmt == "sentence":
            return fake.sentence()
        if fmt == "paragraph":
            return fake.paragraph()
        if fmt == "password":
            return fake.password(length=12)
        if fmt == "objectid":
            return f"{self.py_rng.getrandbits(96):024x}"
        return None

    def _sample_date(self) -> str:
        """Date in the configured window, ISO formatted."""
        delta_days = (self._date_end - self._date_start).days
        if delta_days <= 0:
            delta_days = 365
        return (self._date_start + timedelta(days=int(self.rng.integers(0, delta_days + 1)))).isoformat()

    def _sample_datetime(self) -> str:
        d = self._sample_date()
        return (
            f"{d}T{self.py_rng.randint(0, 23):02d}:{self.py_rng.randint(0, 59):02d}"
            f":{self.py_rng.randint(0, 59):02d}"
        )

    # ------------------------------------------------------------------
    # Containers and composites
    # ------------------------------------------------------------------

    def _sample_array(self, fd: FieldDefinition) -> list[Any]:
        max_items = fd.max_items
        if max_items is None:
            max_items = max(self.config.array_max_items, fd.min_items or 0)
        min_items = fd.min_items if fd.min_items is not None else min(self.config.array_min_items, max_items)
        count = int(self.rng.integers(min_items, max_items + 1))
        return [self.generate_field(fd.items) for _ in range(count)]

    def _sample_composite(self, shape: str) -> dict[str, Any]:
        fake = self.faker
        if shape == "person":
            return {
                "firstName": fake.first_name(),
                "lastName": fake.last_name(),
                "email": fake.email(),
                "phone": fake.phone_number(),
            }
        if shape == "company":
            return {
                "name": fake.company(),
                "catchPhrase": fake.catch_phrase(),
                "industry": self.py_rng.choice(INDUSTRIES),
            }
        if shape == "product":
            return {
                "name": f"{fake.color_name()} {self.py_rng.choice(PRODUCT_NOUNS)}",
                "description": fake.sentence(),
                "price": f"{self.rng.uniform(1, 1000):.2f}",
                "category": self.py_rng.choice(DEPARTMENTS),
            }
        if shape == "transaction":
            return {
                "id": fake.uuid4(),
                "amount": round(float(self.rng.uniform(1, 1000)), 2),
                "date": self._sample_datetime(),
                "currency": fake.currency_code(),
                "description": f"{self.py_rng.choice(TRANSACTION_TYPES)} at {fake.company()}",
            }
        return {
            "street": fake.street_address(),
            "city": fake.city(),
            "state": fake.state(),
            "country": fake.country(),
            "zipCode": fake.postcode(),
        }


_default_sampler: Optional[FieldSampler] = None


def default_sampler() -> FieldSampler:
    """Shared unseeded sampler bound to the active config, for callers that do not need reproducibility."""
    global _default_sampler
    # Rebuilt whenever set_config swaps the active configuration
    if _default_sampler is None or _default_sampler.config is not get_config():
        _default_sampler = FieldSampler()
    return _default_sampler


def generate_value(
    kind: Any = FieldKind.STRING,
    options: Optional[dict] = None,
    sampler: Optional[FieldSampler] = None,
) -> Any:
    """Generate a single value for ``kind``. See FieldSampler.generate."""
    return (sampler or default_sampler()).generate(kind, options)
