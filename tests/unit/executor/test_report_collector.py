import json
import pytest
import xml.etree.ElementTree as ET
from pathlib import Path

from sauce_bdd.executor.report_collector import ReportCollector


@pytest.fixture
def results():
    return {
        'start_time': '2026-10-19T10:00:00',
        'end_time': '2026-10-19T10:00:12.500000',
        'status': 'failed',
        'summary': {'features': 1, 'total': 3, 'passed': 1, 'failed': 2,
                    'steps_passed': 4, 'steps_failed': 2, 'steps_skipped': 1},
        'features': [{
            'feature': 'Login',
            'file': 'features/login.feature',
            'status': 'failed',
            'start_time': '2026-10-19T10:00:00',
            'end_time': '2026-10-19T10:00:12',
            'scenarios': [
                {'name': 'Successful Login', 'status': 'passed', 'tags': ['smoke'],
                 'duration': 3.2, 'attempts': 1, 'error': None, 'failure_kind': None,
                 'steps': [{'keyword': 'Given', 'name': 'I am on the login page', 'status': 'passed'}]},
                {'name': 'Locked Out User', 'status': 'failed', 'tags': [],
                 'duration': 4.0, 'attempts': 1,
                 'error': 'Locator expected to contain text "<sadface>"', 'failure_kind': 'assertion',
                 'steps': [{'keyword': 'Then', 'name': 'I should see a locked out error message',
                            'status': 'failed', 'error': 'Locator expected to contain text "<sadface>"',
                            'failure_kind': 'assertion'}]},
                {'name': 'Unwritten', 'status': 'failed', 'tags': [],
                 'duration': 0.1, 'attempts': 1,
                 'error': 'No step definition found for: I dance', 'failure_kind': 'undefined',
                 'steps': [{'keyword': 'When', 'name': 'I dance', 'status': 'failed',
                            'error': 'No step definition found for: I dance', 'failure_kind': 'undefined'},
                           {'keyword': 'Then', 'name': 'I rest', 'status': 'skipped'}]},
            ],
        }],
    }


class TestReportCollector:
    """Test report generation"""

    def test_html_report(self, tmp_path, results):
        path = ReportCollector(str(tmp_path)).generate_report(results, format="html")

        content = Path(path).read_text(encoding='utf-8')
        assert path.endswith(".html")
        assert "Successful Login" in content
        assert "Locked Out User" in content
        assert 'class="step skipped"' in content
        assert "@smoke" in content
        # step errors are escaped
        assert "&lt;sadface&gt;" in content
        assert "<sadface>" not in content

    def test_json_report(self, tmp_path, results):
        path = ReportCollector(str(tmp_path)).generate_report(results, format="json")

        with open(path) as f:
            data = json.load(f)
        assert data['summary']['failed'] == 2
        assert data['features'][0]['scenarios'][2]['failure_kind'] == 'undefined'

    def test_junit_report(self, tmp_path, results):
        path = ReportCollector(str(tmp_path)).generate_report(results, format="junit")

        root = ET.parse(path).getroot()
        assert root.tag == 'testsuites'
        assert root.get('tests') == '3'
        assert root.get('failures') == '1'
        assert root.get('errors') == '1'
        assert float(root.get('time')) == 12.5

        cases = root.findall('./testsuite/testcase')
        assert [c.get('name') for c in cases] == ['Successful Login', 'Locked Out User', 'Unwritten']
        assert cases[0].find('failure') is None
        assert cases[1].find('failure').get('type') == 'assertion'
        assert cases[2].find('error').get('type') == 'undefined'

    def test_output_dir_is_created(self, tmp_path, results):
        output_dir = tmp_path / "nested" / "reports"

        path = ReportCollector(str(output_dir)).generate_report(results, format="json")

        assert Path(path).parent == output_dir

    def test_unsupported_format(self, tmp_path, results):
        with pytest.raises(ValueError):
            ReportCollector(str(tmp_path)).generate_report(results, format="pdf")
