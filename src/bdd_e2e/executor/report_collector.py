import json
from pathlib import Path
from datetime import datetime
from typing import Dict, List, Any, Optional, Tuple
import logging
from jinja2 import Template

from ..core.exceptions import ReportError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("html", "json", "junit")
DEFAULT_EXTENSIONS = {"html": "html", "json": "json", "junit": "xml"}

HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Scenario Report - {{ timestamp }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .header { background-color: #333; color: white; padding: 20px; border-radius: 5px; margin-bottom: 20px; }
        .summary { display: flex; gap: 20px; margin-bottom: 30px; }
        .summary-card { background: white; padding: 20px; border-radius: 5px; flex: 1; text-align: center; }
        .summary-card .number { font-size: 36px; font-weight: bold; }
        .passed { color: #28a745; }
        .failed { color: #dc3545; }
        .pending, .undefined { color: #fd7e14; }
        .skipped { color: #ffc107; }
        .feature { background: white; margin-bottom: 20px; border-radius: 5px; overflow: hidden; }
        .feature-header { background: #f8f9fa; padding: 15px 20px; cursor: pointer; }
        .feature-header.passed { border-left: 5px solid #28a745; }
        .feature-header.failed { border-left: 5px solid #dc3545; }
        .scenario { padding: 15px 20px; border-bottom: 1px solid #eee; }
        .scenario-name { font-weight: bold; }
        .tag { background: #e9ecef; padding: 2px 6px; margin-right: 4px; border-radius: 3px; font-size: 12px; }
        .step { font-family: monospace; padding: 2px 0; }
        .error { background: #f8d7da; padding: 8px; white-space: pre-wrap; font-family: monospace; }
        .attachment img { max-width: 100%; border: 1px solid #ddd; margin-top: 10px; }
    </style>
    <script>
        function toggleFeature(featureId) {
            const content = document.getElementById(featureId);
            content.style.display = content.style.display === 'none' ? 'block' : 'none';
        }
    </script>
</head>
<body>
    <div class="header">
        <h1>Scenario Report</h1>
        <p>Generated: {{ timestamp }}</p>
        <p>Duration: {{ duration }}</p>
    </div>

    <div class="summary">
        <div class="summary-card"><h3>Scenarios</h3><div class="number">{{ summary.total }}</div></div>
        <div class="summary-card"><h3>Passed</h3><div class="number passed">{{ summary.passed }}</div></div>
        <div class="summary-card"><h3>Failed</h3><div class="number failed">{{ summary.failed }}</div></div>
        <div class="summary-card"><h3>Other</h3><div class="number skipped">{{ summary.pending + summary.undefined + summary.skipped }}</div></div>
        <div class="summary-card"><h3>Pass Rate</h3><div class="number">{{ pass_rate }}%</div></div>
    </div>

    {% for feature in features %}
    <div class="feature">
        <div class="feature-header {{ feature.status }}" onclick="toggleFeature('feature-{{ loop.index }}')">
            <h2>{{ feature.feature }}</h2>
            <div>{{ feature.file }}</div>
        </div>
        <div id="feature-{{ loop.index }}">
            {% for scenario in feature.scenarios %}
            <div class="scenario">
                <div class="scenario-name">{{ scenario.name }} <span class="{{ scenario.status }}">{{ scenario.status|upper }}</span></div>
                {% for tag in scenario.tags %}<span class="tag">@{{ tag }}</span>{% endfor %}
                {% for step in scenario.steps %}
                <div class="step {{ step.status }}">{{ step.keyword }} {{ step.name }}</div>
                {% if step.error %}<div class="error">{{ step.error }}</div>{% endif %}
                {% if step.snippet %}<div class="error">{{ step.snippet }}</div>{% endif %}
                {% endfor %}
                {% if scenario.error and not scenario.steps|selectattr('error')|list %}
                <div class="error">{{ scenario.error }}</div>
                {% endif %}
                {% for attachment in scenario.attachments %}
                <div class="attachment">
                    {% if attachment.media_type.startswith('image/') %}
                    <img src="data:{{ attachment.media_type }};base64,{{ attachment.data }}" alt="{{ attachment.name }}">
                    {% else %}
                    <a href="data:{{ attachment.media_type }};base64,{{ attachment.data }}">{{ attachment.name or attachment.media_type }}</a>
                    {% endif %}
                </div>
                {% endfor %}
            </div>
            {% endfor %}
        </div>
    </div>
    {% endfor %}
</body>
</html>
"""

JUNIT_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites name="bdd-e2e" time="{{ duration }}" tests="{{ total_tests }}" failures="{{ failures }}" skipped="{{ skipped }}">
{%- for feature in features %}
    <testsuite name="{{ feature.feature }}" tests="{{ feature.scenarios|length }}" failures="{{ feature.failures }}" skipped="{{ feature.skipped }}" time="{{ feature.duration }}">
    {%- for scenario in feature.scenarios %}
        <testcase classname="{{ feature.feature|replace(' ', '_') }}" name="{{ scenario.name }}" time="{{ scenario.duration }}">
        {%- if scenario.status == 'failed' %}
            <failure message="{{ scenario.error|default('Scenario failed', true) }}">
            {%- for step in scenario.steps if step.status == 'failed' %}
{{ step.keyword }} {{ step.name }}
Error: {{ step.error }}
            {%- endfor %}
            </failure>
        {%- elif scenario.status != 'passed' %}
            <skipped message="{{ scenario.status }}"/>
        {%- endif %}
        </testcase>
    {%- endfor %}
    </testsuite>
{%- endfor %}
</testsuites>
"""


class ReportCollector:
    """Writes scenario results as HTML, JSON or JUnit reports"""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = Path(output_dir)

    @staticmethod
    def parse_format(spec: str) -> Tuple[str, Optional[str]]:
        """Split a "<format>:<path>" spec; the path part is optional"""
        name, _, path = spec.partition(':')
        name = name.strip().lower()
        if name not in SUPPORTED_FORMATS:
            raise ReportError(f"Unsupported report format: {name}")
        return name, path.strip() or None

    def write_all(self, results: Dict[str, Any], formats: List[str]) -> List[str]:
        """Write one report per format spec and return their paths"""
        return [
            self.generate_report(results, name, path)
            for name, path in (self.parse_format(spec) for spec in formats)
        ]

    def generate_report(self, results: Dict[str, Any], format: str = "html",
                        path: Optional[str] = None) -> str:
        """
        Generate test report in specified format

        Args:
            results: Scenario execution results
            format: Report format (html, json, junit)
            path: Output file; defaults to a timestamped file in output_dir

        Returns:
            Path to generated report
        """
        if format not in SUPPORTED_FORMATS:
            raise ReportError(f"Unsupported report format: {format}")

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        report_path = Path(path) if path else self.output_dir / f"report_{timestamp}.{DEFAULT_EXTENSIONS[format]}"
        report_path.parent.mkdir(parents=True, exist_ok=True)

        if format == "html":
            content = self._render_html(results, timestamp)
        elif format == "json":
            content = json.dumps(results, indent=2, default=str)
        else:
            content = self._render_junit(results)

        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"{format.upper()} report generated: {report_path}")
        return str(report_path)

    def _render_html(self, results: Dict[str, Any], timestamp: str) -> str:
        summary = results.get('summary', {})
        total = summary.get('total', 0)
        passed = summary.get('passed', 0)
        pass_rate = round((passed / total * 100) if total > 0 else 0, 1)

        summary = {key: summary.get(key, 0)
                   for key in ('total', 'passed', 'failed', 'pending', 'undefined', 'skipped')}

        template = Template(HTML_TEMPLATE, autoescape=True)
        return template.render(
            timestamp=timestamp,
            duration=_duration(results),
            summary=summary,
            pass_rate=pass_rate,
            features=results.get('features', [])
        )

    def _render_junit(self, results: Dict[str, Any]) -> str:
        features = []
        for feature in results.get('features', []):
            scenarios = [
                {**scenario, 'duration': _seconds(scenario)}
                for scenario in feature.get('scenarios', [])
            ]
            features.append({
                **feature,
                'scenarios': scenarios,
                'failures': sum(1 for s in scenarios if s.get('status') == 'failed'),
                'skipped': sum(1 for s in scenarios if s.get('status') not in ('passed', 'failed')),
                'duration': _seconds(feature),
            })

        template = Template(JUNIT_TEMPLATE, autoescape=True)
        return template.render(
            duration=_seconds(results),
            total_tests=sum(len(f['scenarios']) for f in features),
            failures=sum(f['failures'] for f in features),
            skipped=sum(f['skipped'] for f in features),
            features=features
        )


def _seconds(record: Dict[str, Any]) -> float:
    if record.get('start_time') and record.get('end_time'):
        start = datetime.fromisoformat(record['start_time'])
        end = datetime.fromisoformat(record['end_time'])
        return (end - start).total_seconds()
    return 0


def _duration(results: Dict[str, Any]) -> str:
    start = datetime.fromisoformat(results.get('start_time', datetime.now().isoformat()))
    end = datetime.fromisoformat(results.get('end_time', datetime.now().isoformat()))
    return str(end - start)
