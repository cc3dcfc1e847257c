from maas_exerciser.core.serialization import describe_matches, to_json_safe_dict
from maas_exerciser.core.types import ConstraintMatches, File


def test_to_json_safe_dict_renders_bytes_as_base64():
    data = to_json_safe_dict(File(filename="a", content=b"hi"))

    assert data["filename"] == "a"
    assert data["content"] == "aGk="


def test_to_json_safe_dict_keeps_nested_matches():
    data = to_json_safe_dict(ConstraintMatches(interfaces={"default": [7]}))

    assert data == {"interfaces": {"default": [7]}, "storage": {}}
    assert describe_matches(ConstraintMatches(interfaces={"default": [7]})) == "interfaces: default=[7]"
