"""
Prompt drift harness -- run the generator over fixed cases and validate every output.

    pq-reps-harness run --system system.txt --cases cases.yaml --out out/
"""

from .cases import load_cases
from .models import CaseResult, HarnessCase, HarnessError, Report, ReportSummary
from .prompt import build_user_prompt
from .providers import MockProvider, OpenAIProvider, ScriptProvider, get_provider
from .report_writer import write_reports
from .runner import run_harness
