from __future__ import annotations


def test_public_api_exports() -> None:
    import fovcam

    assert hasattr(fovcam, "FovCamera")
    assert hasattr(fovcam, "ParameterStore")
    assert hasattr(fovcam, "ProjectionResult")
    assert hasattr(fovcam, "IntrinsicParams")
    assert hasattr(fovcam, "DEFAULT_PARAMS")
