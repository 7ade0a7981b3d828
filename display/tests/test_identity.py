import pytest

from display.identity import DisplayedIdentity, extract_identity


@pytest.mark.parametrize("record", [{}, None, [], "abc", 42, {"user": None}, {"user": "bob"}])
def test_extraction_never_fails(record):
    identity = extract_identity(record)
    assert identity == DisplayedIdentity(
        name="Unknown",
        company="Unknown Company",
        position="Unknown Position",
        image_url=None,
    )


def test_flat_record():
    identity = extract_identity(
        {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "companyName": "Analytical Engines",
            "position": "Programmer",
            "image": ["https://cdn.example.com/ada.jpg", "https://cdn.example.com/other.jpg"],
        }
    )
    assert identity.to_dict() == {
        "name": "Ada Lovelace",
        "company": "Analytical Engines",
        "position": "Programmer",
        "imageUrl": "https://cdn.example.com/ada.jpg",
    }


def test_nested_user_takes_precedence():
    identity = extract_identity(
        {
            "name": "Flat Name",
            "companyName": "Flat Co",
            "position": "Flat Position",
            "user": {
                "name": "Grace Hopper",
                "company": "US Navy",
                "position": "Rear Admiral",
                "imageUrl": "https://cdn.example.com/grace.jpg",
            },
        }
    )
    assert identity.name == "Grace Hopper"
    assert identity.company == "US Navy"
    assert identity.position == "Rear Admiral"
    assert identity.image_url == "https://cdn.example.com/grace.jpg"


def test_first_and_last_name_need_both_parts():
    assert extract_identity({"firstName": "Ada"}).name == "Unknown"
    assert extract_identity({"firstName": "Ada", "name": "Countess"}).name == "Countess"


def test_blank_values_fall_through():
    identity = extract_identity(
        {
            "user": {"name": "   ", "company": "", "role": "Speaker"},
            "name": "Linus",
            "company": "Kernel Org",
            "image": [],
            "photo": "https://cdn.example.com/linus.png",
        }
    )
    assert identity.name == "Linus"
    assert identity.company == "Kernel Org"
    assert identity.position == "Speaker"
    assert identity.image_url == "https://cdn.example.com/linus.png"


def test_to_dict_omits_missing_image():
    assert "imageUrl" not in extract_identity({"name": "No Photo"}).to_dict()


def _merge(*parts):
    record = {}
    for part in parts:
        for key, value in part.items():
            if isinstance(value, dict):
                record.setdefault(key, {}).update(value)
            else:
                record[key] = value
    return record


# (field, higher-priority link, next link)
ADJACENT_LINKS = [
    ("name", {"firstName": "Ada", "lastName": "Lovelace"}, {"user": {"name": "Nested Name"}}),
    ("name", {"user": {"name": "Nested Name"}}, {"name": "Flat Name"}),
    ("company", {"user": {"company": "Nested Co"}}, {"companyName": "Company Name Co"}),
    ("company", {"companyName": "Company Name Co"}, {"company": "Flat Co"}),
    ("position", {"user": {"position": "Nested Position"}}, {"position": "Flat Position"}),
    ("position", {"position": "Flat Position"}, {"user": {"role": "Nested Role"}}),
    ("image_url", {"image": "https://img.example.com/image.jpg"}, {"user": {"imageUrl": "https://img.example.com/user-imageurl.jpg"}}),
    ("image_url", {"user": {"imageUrl": "https://img.example.com/user-imageurl.jpg"}}, {"user": {"image": "https://img.example.com/user-image.jpg"}}),
    ("image_url", {"user": {"image": ["https://img.example.com/user-image.jpg"]}}, {"imageUrl": "https://img.example.com/imageurl.jpg"}),
    ("image_url", {"user": {"image": "https://img.example.com/user-image.jpg"}}, {"imageUrl": "https://img.example.com/imageurl.jpg"}),
    ("image_url", {"imageUrl": "https://img.example.com/imageurl.jpg"}, {"user": {"photo": "https://img.example.com/user-photo.jpg"}}),
    ("image_url", {"user": {"photo": "https://img.example.com/user-photo.jpg"}}, {"photo": "https://img.example.com/photo.jpg"}),
]


def _expected(field, part):
    if field == "name" and "firstName" in part:
        return f"{part['firstName']} {part['lastName']}"
    leaf = part
    while isinstance(leaf, dict):
        leaf = next(iter(leaf.values()))
    return leaf[0] if isinstance(leaf, list) else leaf


@pytest.mark.parametrize(("field", "higher", "lower"), ADJACENT_LINKS)
def test_fallback_chain_order(field, higher, lower):
    assert getattr(extract_identity(_merge(lower, higher)), field) == _expected(field, higher)
    # with the higher link absent, the next one is used
    assert getattr(extract_identity(_merge(lower)), field) == _expected(field, lower)
