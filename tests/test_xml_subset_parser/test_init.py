"""Test module for xml_subset_parser package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xml_subset_parser

    # Assert
    assert xml_subset_parser is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xml_subset_parser

    # Assert
    assert isinstance(xml_subset_parser.__version__, str)
    assert xml_subset_parser.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    # Arrange & Act
    import xml_subset_parser

    # Assert
    assert xml_subset_parser.__author__ == "XML Subset Parser Team"


def test_package_all_exports() -> None:
    """Test that every name in __all__ is importable from the package."""
    # Arrange & Act
    import xml_subset_parser

    # Assert
    for name in xml_subset_parser.__all__:
        assert hasattr(xml_subset_parser, name), name
    assert {"parse", "parse_file", "try_parse", "XMLSubsetParser"} <= set(
        xml_subset_parser.__all__
    )


def test_top_level_parse() -> None:
    """Test the top-level parse entry point."""
    # Arrange
    from xml_subset_parser import Element, parse

    # Act
    document = parse("<root/>")

    # Assert
    assert isinstance(document.get_root_element(), Element)
