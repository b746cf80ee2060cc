"""End-to-end tests: validate a directory of process files, then parse the sound ones."""

import pytest

import procdoc
from procdoc.parser.process import ProcessParser
from procdoc.validation.batch import BatchValidator, generate_batch_report
from procdoc.validation.service import ValidationService

pytestmark = pytest.mark.integration


@pytest.fixture
def project_dir(valid_cai_file, valid_cdi_file, malformed_file, duplicate_id_file, broken_reference_file):
    return valid_cai_file.parent


class TestValidateThenParse:
    """Validation and parsing over the same files."""

    def test_documentation_pipeline(self, project_dir):
        service = ValidationService()
        parser = ProcessParser()
        files = sorted(project_dir.glob("*.xml"))

        batch = BatchValidator(service).validate_batch(files)
        valid_files = [item.file for item in batch.results if item.success]
        models = [parser.parse(path) for path in valid_files]

        assert sorted(path.name for path in valid_files) == ["customer-sync.xml", "order-load.xml"]
        assert sorted(model.process_name for model in models) == ["CustomerDataSync", "OrderLoad"]
        assert batch.failure_count == 3

        report = generate_batch_report(batch)
        for path in files:
            assert path.name in report

    def test_revalidation_reuses_cached_results(self, project_dir):
        service = ValidationService()
        files = sorted(project_dir.glob("*.xml"))

        BatchValidator(service).validate_batch(files)
        BatchValidator(service).validate_batch(files)

        stats = service.cache_stats()
        assert stats.computations == len(files)
        assert stats.hits == len(files)
        assert stats.hit_rate == 0.5

    def test_every_invalid_file_explains_itself(self, project_dir):
        service = ValidationService()
        for path in sorted(project_dir.glob("*.xml")):
            result = service.validate_complete(path)
            for error in result.errors:
                assert error.code
                assert error.message

    def test_module_level_helpers(self, valid_cai_file, broken_reference_file):
        assert procdoc.validate_file(valid_cai_file).valid is True
        assert procdoc.validate_file(str(broken_reference_file)).valid is False
        assert procdoc.parse_file(valid_cai_file).process_type.display_name == (
            "Cloud Application Integration"
        )
