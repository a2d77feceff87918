import json
import xml.etree.ElementTree as ET

import pytest

from bdd_e2e.core import ReportError
from bdd_e2e.executor import ReportCollector


@pytest.fixture
def results():
    return {
        'start_time': '2026-01-01T10:00:00',
        'end_time': '2026-01-01T10:00:05',
        'summary': {'features': 1, 'total': 2, 'passed': 1, 'failed': 1,
                    'pending': 0, 'undefined': 0, 'skipped': 0},
        'features': [{
            'feature': 'Login',
            'file': 'features/login.feature',
            'status': 'failed',
            'start_time': '2026-01-01T10:00:00',
            'end_time': '2026-01-01T10:00:05',
            'scenarios': [
                {
                    'name': 'Valid login',
                    'tags': ['smoke'],
                    'status': 'passed',
                    'steps': [{'keyword': 'Given', 'name': 'I navigate to "/login"', 'status': 'passed'}],
                    'attachments': [],
                    'start_time': '2026-01-01T10:00:00',
                    'end_time': '2026-01-01T10:00:02',
                },
                {
                    'name': 'Invalid <login>',
                    'tags': [],
                    'status': 'failed',
                    'error': 'Text "Welcome" not found',
                    'steps': [{'keyword': 'Then', 'name': 'I should see "Welcome"',
                               'status': 'failed', 'error': 'Text "Welcome" not found'}],
                    'attachments': [{'name': 'failure.png', 'media_type': 'image/png', 'data': 'cG5n'}],
                    'start_time': '2026-01-01T10:00:02',
                    'end_time': '2026-01-01T10:00:05',
                },
            ],
        }],
    }


class TestReportCollector:
    """Test report generation"""

    def test_html_report_inlines_screenshots(self, tmp_path, results):
        path = ReportCollector(tmp_path).generate_report(results, 'html', str(tmp_path / 'r.html'))

        html = (tmp_path / 'r.html').read_text()
        assert path == str(tmp_path / 'r.html')
        assert 'Valid login' in html
        assert 'Invalid &lt;login&gt;' in html
        assert 'data:image/png;base64,cG5n' in html
        assert '50.0%' in html

    def test_json_report(self, tmp_path, results):
        path = ReportCollector(tmp_path).generate_report(results, 'json')

        with open(path) as f:
            assert json.load(f)['features'][0]['feature'] == 'Login'

    def test_junit_report(self, tmp_path, results):
        path = ReportCollector(tmp_path).generate_report(results, 'junit', str(tmp_path / 'junit.xml'))

        root = ET.parse(path).getroot()
        assert root.get('tests') == '2'
        assert root.get('failures') == '1'
        cases = root.findall('./testsuite/testcase')
        assert [c.get('name') for c in cases] == ['Valid login', 'Invalid <login>']
        assert cases[1].find('failure').get('message') == 'Text "Welcome" not found'

    def test_write_all_uses_format_specs(self, tmp_path, results):
        formats = [f"json:{tmp_path / 'out' / 'report.json'}", 'html']
        paths = ReportCollector(tmp_path / 'default').write_all(results, formats)

        assert paths[0] == str(tmp_path / 'out' / 'report.json')
        assert paths[1].startswith(str(tmp_path / 'default'))
        assert paths[1].endswith('.html')

    def test_parse_format(self):
        assert ReportCollector.parse_format('junit:reports/r.xml') == ('junit', 'reports/r.xml')
        assert ReportCollector.parse_format('HTML') == ('html', None)

    def test_unsupported_format(self, tmp_path, results):
        with pytest.raises(ReportError):
            ReportCollector.parse_format('allure:out')
        with pytest.raises(ReportError):
            ReportCollector(tmp_path).generate_report(results, 'pdf')
