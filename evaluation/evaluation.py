#!/usr/bin/env python3
"""
Evaluation runner for the Huffman bitstring coder.

This evaluation script:
- Runs pytest on the tests/ folder against the flat modules in the project root
- Collects individual test results with pass/fail status
- Builds a code for a sample text and summarises how well it compresses
- Generates a structured JSON report with environment metadata

Run with:
    python evaluation/evaluation.py [--output PATH] [--tests-dir DIR] [--sample FILE]
"""
import argparse
import json
import math
import os
import platform
import subprocess
import sys
import uuid
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from huffman_core import WeightedAlphabet  # noqa: E402
from huffman_service import HuffmanService  # noqa: E402

SAMPLE_TEXT = (
    "it was the best of times it was the worst of times it was the age of wisdom "
    "it was the age of foolishness it was the epoch of belief it was the epoch of "
    "incredulity it was the season of light it was the season of darkness"
)

STATUS_WORDS = (" PASSED", " FAILED", " ERROR", " SKIPPED")


def generate_run_id():
    """Generate a short unique run ID."""
    return uuid.uuid4().hex[:8]


def _git(*args):
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=str(PROJECT_ROOT),
            timeout=5
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def get_git_info():
    """Get git commit and branch information."""
    commit = _git("rev-parse", "HEAD")
    branch = _git("rev-parse", "--abbrev-ref", "HEAD")
    return {
        "git_commit": commit[:8] if commit else "unknown",
        "git_branch": branch or "unknown",
    }


def get_environment_info():
    """Collect environment information for the report."""
    git_info = get_git_info()

    return {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "os": platform.system(),
        "architecture": platform.machine(),
        "git_commit": git_info["git_commit"],
        "git_branch": git_info["git_branch"],
    }


def parse_pytest_verbose_output(output):
    """Parse pytest verbose output to extract test results."""
    tests = []

    for line in output.split('\n'):
        line_stripped = line.strip()

        # Match lines like: tests/test_huffman_core.py::test_build_rejects_empty PASSED
        if '::' not in line_stripped:
            continue
        for status_word in STATUS_WORDS:
            if status_word in line_stripped:
                nodeid = line_stripped.split(status_word)[0].strip()
                tests.append({
                    "nodeid": nodeid,
                    "name": nodeid.split("::")[-1],
                    "outcome": status_word.strip().lower(),
                })
                break

    return tests


def summarize(tests):
    counts = {"passed": 0, "failed": 0, "error": 0, "skipped": 0}
    for test in tests:
        counts[test["outcome"]] += 1
    counts["total"] = len(tests)
    return counts


def run_pytest(tests_dir):
    """
    Run pytest on the tests/ folder with the project root on PYTHONPATH.

    Returns:
        dict with test results
    """
    print(f"\n{'=' * 60}")
    print("RUNNING TESTS")
    print(f"{'=' * 60}")
    print(f"Tests directory: {tests_dir}")

    cmd = [sys.executable, "-m", "pytest", str(tests_dir), "-v", "--tb=short"]

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(PROJECT_ROOT), env.get("PYTHONPATH")) if p
    )

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(PROJECT_ROOT),
            env=env,
            timeout=300
        )
    except subprocess.TimeoutExpired:
        print("❌ Test execution timed out")
        return {
            "success": False,
            "exit_code": -1,
            "tests": [],
            "summary": {"error": "Test execution timed out"},
            "stdout": "",
            "stderr": "",
        }

    stdout = result.stdout
    stderr = result.stderr
    tests = parse_pytest_verbose_output(stdout)
    summary = summarize(tests)

    print(
        f"\nResults: {summary['passed']} passed, {summary['failed']} failed, "
        f"{summary['error']} errors, {summary['skipped']} skipped (total: {summary['total']})"
    )
    for test in tests:
        status_icon = {
            "passed": "✅",
            "failed": "❌",
            "error": "💥",
            "skipped": "⏭️"
        }[test["outcome"]]
        print(f"  {status_icon} {test['nodeid']}: {test['outcome']}")

    return {
        "success": result.returncode == 0,
        "exit_code": result.returncode,
        "tests": tests,
        "summary": summary,
        "stdout": stdout[-3000:],
        "stderr": stderr[-1000:],
    }


def compression_summary(text):
    """Build a character code for ``text`` and compare it with fixed-width coding."""
    alphabet = WeightedAlphabet.from_text(text)
    service = HuffmanService(alphabet)
    bits = service.encode_bitstring(text)
    fixed_width = max(1, math.ceil(math.log2(len(alphabet))))

    return {
        "symbols": len(alphabet),
        "characters": len(text),
        "average_code_length": round(service.model.average_code_length(alphabet), 4),
        "max_code_length": service.model.max_code_length,
        "fixed_width_bits_per_symbol": fixed_width,
        "encoded_bits": len(bits),
        "fixed_width_bits": fixed_width * len(text),
        "roundtrip_ok": service.decode_bitstring(bits) == text,
    }


def generate_output_path():
    """Generate output path in format: evaluation/YYYY-MM-DD/HH-MM-SS/report.json"""
    now = datetime.now()
    output_dir = PROJECT_ROOT / "evaluation" / now.strftime("%Y-%m-%d") / now.strftime("%H-%M-%S")
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / "report.json"


def build_parser():
    parser = argparse.ArgumentParser(description="Run Huffman coder evaluation")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output JSON file path (default: evaluation/YYYY-MM-DD/HH-MM-SS/report.json)"
    )
    parser.add_argument(
        "--tests-dir",
        type=str,
        default=str(PROJECT_ROOT / "tests"),
        help="Directory holding the pytest suites"
    )
    parser.add_argument(
        "--sample",
        type=str,
        default=None,
        help="Text file used for the compression summary (default: built-in English sample)"
    )
    return parser


def main(argv=None):
    """Main entry point for evaluation."""
    args = build_parser().parse_args(argv)

    run_id = generate_run_id()
    started_at = datetime.now()

    print(f"Run ID: {run_id}")
    print(f"Started at: {started_at.isoformat()}")

    sample = Path(args.sample).read_text(encoding="utf-8") if args.sample else SAMPLE_TEXT
    compression = compression_summary(sample)
    print(
        f"\nCompression: {compression['encoded_bits']} bits vs "
        f"{compression['fixed_width_bits']} fixed-width bits "
        f"(avg {compression['average_code_length']} bits/symbol)"
    )

    results = run_pytest(args.tests_dir)
    success = results["success"] and compression["roundtrip_ok"]

    finished_at = datetime.now()
    duration = (finished_at - started_at).total_seconds()

    report = {
        "run_id": run_id,
        "started_at": started_at.isoformat(),
        "finished_at": finished_at.isoformat(),
        "duration_seconds": round(duration, 6),
        "success": success,
        "error": None if success else "Tests failed or sample did not round-trip",
        "environment": get_environment_info(),
        "compression": compression,
        "results": results,
    }

    output_path = Path(args.output) if args.output else generate_output_path()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2)
    print(f"\n✅ Report saved to: {output_path}")

    print(f"\n{'=' * 60}")
    print("EVALUATION COMPLETE")
    print(f"{'=' * 60}")
    print(f"Run ID: {run_id}")
    print(f"Duration: {duration:.2f}s")
    print(f"Success: {'✅ YES' if success else '❌ NO'}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
