# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for Package Type Definitions

Tests package.yaml loading, content declarations, and repository
structure validation.
"""

import pytest
from pathlib import Path

from acp.core.errors import InvalidVersionError, PackageStructureError, ParseError
from acp.registry.models import Category
from acp.registry.package_types import (
    ContentFile,
    PackageDefinition,
    source_path,
    validate_package_structure
)
from acp.yaml import YamlDocument


class TestContentFile:
    """Test suite for ContentFile class"""

    def test_create_content_file(self):
        """Test creating a content file"""
        content = ContentFile(category=Category.PATTERNS, name='api-design.md', description='API patterns')

        assert content.category == Category.PATTERNS
        assert content.name == 'api-design.md'
        assert str(content) == 'patterns/api-design.md'

    def test_empty_name(self):
        """Test that empty name raises error"""
        with pytest.raises(ValueError, match="name cannot be empty"):
            ContentFile(category=Category.COMMANDS, name='')

    def test_name_with_path(self):
        """Test that names can't escape the category directory"""
        with pytest.raises(ValueError, match="must not contain a path"):
            ContentFile(category=Category.COMMANDS, name='../../etc/passwd')


class TestPackageDefinition:
    """Test suite for PackageDefinition class"""

    def test_create_package(self):
        """Test creating a package definition"""
        package = PackageDefinition(
            name='firebase',
            version='1.2.0',
            files=[
                ContentFile(Category.PATTERNS, 'a.md'),
                ContentFile(Category.PATTERNS, 'b.md'),
                ContentFile(Category.DESIGNS, 'plan.md'),
            ]
        )

        assert str(package) == 'firebase@1.2.0'
        assert package.counts() == {'patterns': 2, 'commands': 0, 'designs': 1}
        assert [c.name for c in package.files_in(Category.PATTERNS)] == ['a.md', 'b.md']

    def test_empty_name(self):
        """Test that empty name raises error"""
        with pytest.raises(ValueError, match="name cannot be empty"):
            PackageDefinition(name='', version='1.0.0')

    @pytest.mark.parametrize("name", ["@acme/tools", "-leading-dash", "has:colon", "with space"])
    def test_invalid_name(self, name):
        """Test names that can't be manifest keys raise error"""
        with pytest.raises(ValueError, match="Invalid package name"):
            PackageDefinition(name=name, version='1.0.0')

    def test_from_document_invalid_name(self):
        """Test an invalid name in package.yaml is a ParseError"""
        document = YamlDocument.from_text('name: "@acme/tools"\nversion: 1.0.0\n')

        with pytest.raises(ParseError, match="Invalid package name"):
            PackageDefinition.from_document(document)

    def test_invalid_version(self):
        """Test that non-semver versions raise error"""
        with pytest.raises(InvalidVersionError):
            PackageDefinition(name='firebase', version='latest')

    def test_version_normalized(self):
        """Test a leading v is dropped"""
        assert PackageDefinition(name='firebase', version='v2.0.0').version == '2.0.0'

    def test_duplicate_files(self):
        """Test a file declared twice in a category"""
        with pytest.raises(ValueError, match="Duplicate patterns entry"):
            PackageDefinition(
                name='firebase',
                version='1.0.0',
                files=[ContentFile(Category.PATTERNS, 'a.md'), ContentFile(Category.PATTERNS, 'a.md')]
            )

    def test_from_document(self):
        """Test loading from package.yaml text"""
        document = YamlDocument.from_text(
            "name: firebase\n"
            "version: 1.0.0\n"
            "description: Firebase patterns\n"
            "contents:\n"
            "  patterns:\n"
            "    - name: auth.md\n"
            "      description: Auth flows\n"
            "  commands:\n"
            "    - deploy.md\n"
            "  designs: []\n"
        )
        package = PackageDefinition.from_document(document)

        assert package.name == 'firebase'
        assert package.description == 'Firebase patterns'
        assert [str(c) for c in package.files] == ['patterns/auth.md', 'commands/deploy.md']
        assert package.files[0].description == 'Auth flows'

    def test_from_document_missing_fields(self):
        """Test package.yaml without a version"""
        document = YamlDocument.from_text("name: firebase\n")

        with pytest.raises(ParseError, match="missing required fields"):
            PackageDefinition.from_document(document)

    def test_from_document_bad_version(self):
        """Test package.yaml with a non-semver version"""
        document = YamlDocument.from_text("name: firebase\nversion: one\n")

        with pytest.raises(ParseError, match="Invalid version format"):
            PackageDefinition.from_document(document)

    def test_from_document_entry_without_name(self):
        """Test a content entry missing its name"""
        document = YamlDocument.from_text(
            "name: firebase\nversion: 1.0.0\ncontents:\n  patterns:\n    - description: nameless\n"
        )

        with pytest.raises(ParseError, match="needs a name"):
            PackageDefinition.from_document(document)

    def test_from_file_missing(self, temp_dir):
        """Test loading a package.yaml that doesn't exist"""
        with pytest.raises(FileNotFoundError):
            PackageDefinition.from_file(temp_dir / 'package.yaml')


class TestValidatePackageStructure:
    """Test suite for validate_package_structure"""

    @pytest.fixture
    def package(self):
        return PackageDefinition(
            name='firebase',
            version='1.0.0',
            files=[
                ContentFile(Category.PATTERNS, 'auth.md'),
                ContentFile(Category.COMMANDS, 'deploy.md'),
                ContentFile(Category.DESIGNS, 'plan.md'),
            ]
        )

    def _write(self, root: Path, relative: str):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(relative)
        return path

    def test_valid_structure(self, temp_dir, package):
        """Test every declared file is found"""
        self._write(temp_dir, 'agent/patterns/auth.md')
        self._write(temp_dir, 'agent/commands/deploy.md')
        self._write(temp_dir, 'agent/design/plan.md')

        found = validate_package_structure(temp_dir, package)

        assert found['designs/plan.md'] == temp_dir / 'agent' / 'design' / 'plan.md'
        assert len(found) == 3

    def test_top_level_directories(self, temp_dir, package):
        """Test files outside agent/ are found too"""
        self._write(temp_dir, 'patterns/auth.md')
        self._write(temp_dir, 'commands/deploy.md')
        self._write(temp_dir, 'designs/plan.md')

        assert len(validate_package_structure(temp_dir, package)) == 3

    def test_agent_directory_preferred(self, temp_dir):
        """Test agent/ wins when a file exists in both places"""
        preferred = self._write(temp_dir, 'agent/patterns/auth.md')
        self._write(temp_dir, 'patterns/auth.md')

        assert source_path(temp_dir, ContentFile(Category.PATTERNS, 'auth.md')) == preferred

    def test_missing_files_listed(self, temp_dir, package):
        """Test every missing file is reported"""
        self._write(temp_dir, 'agent/patterns/auth.md')

        with pytest.raises(PackageStructureError) as exc_info:
            validate_package_structure(temp_dir, package)

        assert exc_info.value.missing == ['commands/deploy.md', 'designs/plan.md']

    def test_missing_directory(self, temp_dir, package):
        """Test a repository directory that doesn't exist"""
        with pytest.raises(PackageStructureError, match="does not exist"):
            validate_package_structure(temp_dir / 'nowhere', package)
