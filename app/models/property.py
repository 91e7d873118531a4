from pydantic import BaseModel, Field


def _pick(row: dict, *names: str):
    """First non-empty value among column name variants; unwraps Baserow select fields."""
    for name in names:
        value = row.get(name)
        if isinstance(value, dict):
            value = value.get("value")
        if value not in (None, ""):
            return value
    return None


def _image_urls(value) -> list[str]:
    """Image column as a list of URLs: file field entries or newline separated text."""
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.splitlines() if part.strip()]
    urls = []
    for image in value:
        url = image.get("url") if isinstance(image, dict) else image
        if url:
            urls.append(str(url))
    return urls


def _as_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class Property(BaseModel):
    id: int
    title: str
    price: str | None = None
    type: str | None = None
    category: str | None = None
    location: str | None = None
    city: str | None = None
    neighborhood: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    parking_spaces: int | None = None
    area: str | None = None
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    active: bool = True

    @property
    def address(self) -> str:
        return ", ".join(part for part in (self.neighborhood, self.city) if part)

    @classmethod
    def from_baserow(cls, row: dict) -> "Property | None":
        """Build from a Baserow row (user_field_names=true). Rows without title are skipped."""
        title = _pick(row, "Title", "Título", "title", "Nome", "nome")
        if row.get("id") is None or not title:
            return None

        images = _image_urls(_pick(row, "images", "Imagens"))

        active = True
        for flag in ("Active", "Ativo", "active"):
            if row.get(flag) is False:
                active = False

        price = _pick(row, "Price", "Preço", "price", "Valor", "valor")
        area = _pick(row, "Area", "Área", "area")
        return cls(
            id=int(row["id"]),
            title=str(title),
            price=str(price) if price is not None else None,
            type=_pick(row, "Type", "Tipo", "type"),
            category=_pick(row, "Category", "Categoria", "category"),
            location=_pick(row, "location", "Localização"),
            city=_pick(row, "city", "Cidade"),
            neighborhood=_pick(row, "neighborhood", "Bairro"),
            bedrooms=_as_int(_pick(row, "bedrooms", "Quartos")),
            bathrooms=_as_int(_pick(row, "bathrooms", "Banheiros")),
            parking_spaces=_as_int(_pick(row, "parkingSpaces", "Vagas", "parking")),
            area=str(area) if area is not None else None,
            description=_pick(row, "description", "Descrição"),
            images=images,
            active=active,
        )
