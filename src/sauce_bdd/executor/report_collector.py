import json
from pathlib import Path
from datetime import datetime
from typing import Dict, Any
import logging
from jinja2 import Environment, select_autoescape

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Storefront BDD Report - {{ timestamp }}</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 20px; background-color: #f5f5f5; }
        .header { background-color: #333; color: white; padding: 20px; border-radius: 5px; margin-bottom: 20px; }
        .summary { display: flex; gap: 20px; margin-bottom: 30px; }
        .summary-card {
            background: white; padding: 20px; border-radius: 5px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1); flex: 1; text-align: center;
        }
        .summary-card h3 { margin: 0 0 10px 0; color: #666; }
        .summary-card .number { font-size: 36px; font-weight: bold; }
        .passed { color: #28a745; }
        .failed { color: #dc3545; }
        .skipped { color: #ffc107; }
        .feature {
            background: white; margin-bottom: 20px; border-radius: 5px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1); overflow: hidden;
        }
        .feature-header { background: #f8f9fa; padding: 15px 20px; border-bottom: 1px solid #dee2e6; cursor: pointer; }
        .feature-header.passed { border-left: 5px solid #28a745; }
        .feature-header.failed { border-left: 5px solid #dc3545; }
        .scenario { padding: 15px 20px; border-bottom: 1px solid #eee; }
        .scenario:last-child { border-bottom: none; }
        .scenario-header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 10px; }
        .scenario-name { font-weight: bold; }
        .status-badge { padding: 4px 8px; border-radius: 3px; font-size: 12px; color: white; }
        .status-badge.passed { background-color: #28a745; }
        .status-badge.failed { background-color: #dc3545; }
        .step { margin-left: 20px; padding: 5px 0; font-family: monospace; font-size: 14px; }
        .step.passed::before { content: "✓ "; color: #28a745; }
        .step.failed::before { content: "✗ "; color: #dc3545; }
        .step.skipped { color: #999; }
        .step.skipped::before { content: "- "; color: #ffc107; }
        .error {
            background-color: #f8d7da; color: #721c24; padding: 10px;
            margin: 10px 0 10px 20px; border-radius: 3px; font-size: 12px;
        }
        .kind { font-weight: bold; text-transform: uppercase; }
        .tags { display: flex; gap: 5px; margin-top: 5px; }
        .tag { background-color: #e9ecef; padding: 2px 6px; border-radius: 3px; font-size: 11px; color: #495057; }
        .duration { color: #6c757d; font-size: 12px; }
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
        <h1>Storefront BDD Report</h1>
        <p>Generated: {{ timestamp }}</p>
        <p>Duration: {{ duration }}</p>
    </div>

    <div class="summary">
        <div class="summary-card">
            <h3>Scenarios</h3>
            <div class="number">{{ summary.total }}</div>
        </div>
        <div class="summary-card">
            <h3>Passed</h3>
            <div class="number passed">{{ summary.passed }}</div>
        </div>
        <div class="summary-card">
            <h3>Failed</h3>
            <div class="number failed">{{ summary.failed }}</div>
        </div>
        <div class="summary-card">
            <h3>Skipped Steps</h3>
            <div class="number skipped">{{ summary.steps_skipped }}</div>
        </div>
        <div class="summary-card">
            <h3>Pass Rate</h3>
            <div class="number">{{ pass_rate }}%</div>
        </div>
    </div>

    {% for feature in features %}
    <div class="feature">
        <div class="feature-header {{ feature.status }}" onclick="toggleFeature('feature-{{ loop.index }}')">
            <h2>{{ feature.feature }}</h2>
            <div class="duration">{{ feature.file }}</div>
        </div>
        <div id="feature-{{ loop.index }}" class="feature-content">
            {% for scenario in feature.scenarios %}
            <div class="scenario">
                <div class="scenario-header">
                    <div>
                        <div class="scenario-name">{{ scenario.name }}</div>
                        {% if scenario.tags %}
                        <div class="tags">
                            {% for tag in scenario.tags %}
                            <span class="tag">@{{ tag }}</span>
                            {% endfor %}
                        </div>
                        {% endif %}
                        <div class="duration">{{ scenario.duration }}s, attempt {{ scenario.attempts }}</div>
                    </div>
                    <span class="status-badge {{ scenario.status }}">{{ scenario.status|upper }}</span>
                </div>

                {% for step in scenario.steps %}
                <div class="step {{ step.status }}">
                    {{ step.keyword }} {{ step.name }}
                </div>
                {% if step.error %}
                <div class="error"><span class="kind">{{ step.failure_kind }}</span> {{ step.error }}</div>
                {% endif %}
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
<testsuites name="Storefront BDD Results" time="{{ duration }}" tests="{{ total_tests }}" failures="{{ failures }}" errors="{{ errors }}">
    {% for feature in features %}
    <testsuite name="{{ feature.feature }}" tests="{{ feature.scenarios|length }}" failures="{{ feature.failures }}" errors="{{ feature.errors }}" time="{{ feature.duration }}">
        {% for scenario in feature.scenarios %}
        <testcase classname="{{ feature.feature|replace(' ', '_') }}" name="{{ scenario.name }}" time="{{ scenario.duration }}">
            {% if scenario.status == 'failed' %}
            {% set tag = 'failure' if scenario.failure_kind == 'assertion' else 'error' %}
            <{{ tag }} type="{{ scenario.failure_kind }}" message="{{ scenario.error|default('Test failed', true) }}">
                {% for step in scenario.steps %}
                {{ step.status|upper }}: {{ step.keyword }} {{ step.name }}
                {% if step.error %}Error: {{ step.error }}{% endif %}
                {% endfor %}
            </{{ tag }}>
            {% endif %}
        </testcase>
        {% endfor %}
    </testsuite>
    {% endfor %}
</testsuites>
"""


def _seconds_between(start: str, end: str) -> float:
    if not start or not end:
        return 0
    return (datetime.fromisoformat(end) - datetime.fromisoformat(start)).total_seconds()


class ReportCollector:
    """Writes run results as HTML, JSON or JUnit XML"""

    def __init__(self, output_dir: str = "test-results"):
        self.output_dir = Path(output_dir)
        self.environment = Environment(autoescape=select_autoescape(default=True))

    def generate_report(self, results: Dict[str, Any], format: str = "html") -> str:
        """
        Generate test report in specified format

        Args:
            results: Test execution results
            format: Report format (html, json, junit)

        Returns:
            Path to generated report
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        if format == "html":
            return self._generate_html_report(results, timestamp)
        elif format == "json":
            return self._generate_json_report(results, timestamp)
        elif format == "junit":
            return self._generate_junit_report(results, timestamp)
        else:
            raise ValueError(f"Unsupported report format: {format}")

    def _generate_html_report(self, results: Dict[str, Any], timestamp: str) -> str:
        """Generate HTML report"""
        summary = results.get('summary', {})
        total = summary.get('total', 0)
        passed = summary.get('passed', 0)
        pass_rate = round((passed / total * 100) if total > 0 else 0, 1)
        duration = _seconds_between(results.get('start_time'), results.get('end_time'))

        template = self.environment.from_string(HTML_TEMPLATE)
        html_content = template.render(
            timestamp=timestamp,
            duration=f"{duration:.1f}s",
            summary=summary,
            pass_rate=pass_rate,
            features=results.get('features', [])
        )

        report_path = self.output_dir / f"report_{timestamp}.html"
        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(html_content)

        logger.info(f"HTML report generated: {report_path}")
        return str(report_path)

    def _generate_json_report(self, results: Dict[str, Any], timestamp: str) -> str:
        """Generate JSON report"""
        report_path = self.output_dir / f"report_{timestamp}.json"

        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, default=str)

        logger.info(f"JSON report generated: {report_path}")
        return str(report_path)

    def _generate_junit_report(self, results: Dict[str, Any], timestamp: str) -> str:
        """Generate JUnit XML report; assertion failures are <failure>, everything else <error>"""
        features = []
        for feature in results.get('features', []):
            scenarios = feature.get('scenarios', [])
            failed = [s for s in scenarios if s.get('status') == 'failed']
            features.append({
                **feature,
                'failures': sum(1 for s in failed if s.get('failure_kind') == 'assertion'),
                'errors': sum(1 for s in failed if s.get('failure_kind') != 'assertion'),
                'duration': _seconds_between(feature.get('start_time'), feature.get('end_time')),
            })

        template = self.environment.from_string(JUNIT_TEMPLATE)
        junit_content = template.render(
            duration=_seconds_between(results.get('start_time'), results.get('end_time')),
            total_tests=sum(len(f.get('scenarios', [])) for f in features),
            failures=sum(f['failures'] for f in features),
            errors=sum(f['errors'] for f in features),
            features=features,
        )

        report_path = self.output_dir / f"report_{timestamp}.xml"
        with open(report_path, 'w', encoding='utf-8') as f:
            f.write(junit_content)

        logger.info(f"JUnit report generated: {report_path}")
        return str(report_path)
