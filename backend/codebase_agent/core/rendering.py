"""Deterministic text renderings of a generated codebase."""

from __future__ import annotations

from collections.abc import Sequence

from codebase_agent.core.detection import DOCKERFILE, PACKAGE_JSON, REQUIREMENTS_TXT, has_file
from codebase_agent.models.codebase import (
    DevelopmentPlan,
    GeneratedFile,
    GenerationRequest,
    ProjectType,
)

ROOT_GROUP = "root"


def render_structure(files: Sequence[GeneratedFile]) -> str:
    """
    Group paths by parent directory (top-level files under ``root``) and list
    directories and file names lexicographically. Input order is irrelevant.
    """
    groups: dict[str, list[str]] = {}
    for f in files:
        directory, sep, filename = f.path.rpartition("/")
        groups.setdefault(directory if sep else ROOT_GROUP, []).append(filename)

    lines = ["Project Structure:", ""]
    for directory in sorted(groups):
        lines.append(f"{directory}/")
        lines.extend(f"  ├── {name}" for name in sorted(groups[directory]))
        lines.append("")
    return "\n".join(lines) + "\n"


def render_instructions(
    request: GenerationRequest,
    files: Sequence[GeneratedFile],
    plan: DevelopmentPlan,
) -> str:
    has_package_json = has_file(files, PACKAGE_JSON)
    has_requirements = has_file(files, REQUIREMENTS_TXT)
    has_dockerfile = has_file(files, DOCKERFILE)
    has_readme = any(f.path.lower() == "readme.md" for f in files)
    project_type = request.project_type.value

    out: list[str] = [
        f"# {project_type.upper()} Project Setup Instructions",
        "",
        "## Project Overview",
        plan.plan,
        "",
        "## Prerequisites",
    ]
    if has_package_json:
        out += ["- Node.js (v16 or higher)", "- npm or yarn"]
    if has_requirements:
        out += ["- Python (v3.8 or higher)", "- pip"]
    if has_dockerfile:
        out.append("- Docker")

    steps: list[list[str]] = [["Extract all files to your project directory"]]
    if has_package_json:
        steps.append(["Install dependencies:", *_bash("npm install")])
    if has_requirements:
        steps.append(["Install Python dependencies:", *_bash("pip install -r requirements.txt")])
    steps.append(["Configure environment variables (check .env.example if present)"])
    if request.project_type in (ProjectType.WEB_APP, ProjectType.FULL_STACK):
        steps.append(["Start the development server:", *_bash("npm run dev")])

    out += ["", "## Setup Steps", ""]
    for number, (head, *body) in enumerate(steps, 1):
        out.append(f"{number}. {head}")
        out.extend(body)
        out.append("")

    if has_dockerfile:
        out += [
            "## Docker Setup (Alternative)",
            "",
            "1. Build the Docker image:",
            *_bash(f"docker build -t {project_type} ."),
            "",
            "2. Run the container:",
            *_bash(f"docker run -p 3000:3000 {project_type}"),
            "",
        ]

    if has_readme:
        out += [
            "## Additional Information",
            "Check the README.md file for more detailed instructions and documentation.",
            "",
        ]

    out.append("## Features Implemented")
    out.extend(f"- {feature}" for feature in request.features)
    return "\n".join(out) + "\n"


def _bash(command: str) -> list[str]:
    return ["   ```bash", f"   {command}", "   ```"]
