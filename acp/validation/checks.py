# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Validation Runner

Single responsibility: Run the MCP auth server project checks in order
and record every outcome in a ValidationReport.

Individual checks never abort the run. External tools (npm, node, npx,
docker) are called through an injectable subprocess.run-compatible
runner; a tool that isn't installed is reported as a warning.
"""

import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from acp.cli.output import RED, Output
from acp.core.config import Config
from acp.utils import read_env_file
from acp.validation.report import CheckStatus, Remediation, ValidationReport

logger = logging.getLogger(__name__)

LEVELS = ("quick", "standard", "full")

CRITICAL_PACKAGES = [
    "@modelcontextprotocol/sdk",
    "@prmichaelsen/mcp-auth",
    "typescript",
    "esbuild",
]

PLACEHOLDER_RE = re.compile(r"your-.*-here|placeholder|changeme", re.IGNORECASE)

MIN_JWT_SECRET_LENGTH = 32
MIN_BUNDLE_SIZE = 1000


@dataclass
class ValidationOptions:
    level: str = "quick"
    skip_tests: bool = False
    skip_docker: bool = False
    fix: bool = False
    verbose: bool = False


@dataclass
class ToolResult:
    """Outcome of an external command; ok is False when it failed or couldn't run"""
    ok: bool
    output: str = ""
    missing: bool = False
    timed_out: bool = False


class ValidationRunner:
    """Runs the project checks for one project directory"""

    def __init__(
        self,
        project_dir: Path,
        options: Optional[ValidationOptions] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        config: Optional[Config] = None,
        out: Optional[Output] = None
    ):
        """
        Initialize validation runner.

        Args:
            project_dir: Root of the project being validated
            options: Level and flags
            runner: subprocess.run-compatible callable for npm/node/docker
            config: Tool configuration (subprocess timeouts)
            out: Where check lines are printed
        """
        self.project_dir = Path(project_dir)
        self.options = options or ValidationOptions()
        self.runner = runner
        self.config = config or Config()
        self.out = out or Output()
        self.report = ValidationReport(level=self.options.level)
        self._section = ""
        self._env: Optional[Dict[str, str]] = None

    # =========================================================================
    # Recording
    # =========================================================================

    def _pass(self, message: str) -> None:
        self.report.add(self._section, CheckStatus.PASS, message)
        self.out.success(message)

    def _fail(self, message: str) -> None:
        self.report.add(self._section, CheckStatus.FAIL, message)
        self.out.failure(message)

    def _warn(self, message: str) -> None:
        self.report.add(self._section, CheckStatus.WARN, message)
        self.out.warning(message)

    def _info(self, message: str) -> None:
        self.report.add(self._section, CheckStatus.INFO, message)
        self.out.info(message)

    def _begin(self, title: str) -> None:
        self._section = title
        self.out.section(title)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _path(self, relative: str) -> Path:
        return self.project_dir / relative

    def _exists(self, relative: str) -> bool:
        return self._path(relative).is_file()

    def _read(self, relative: str) -> str:
        path = self._path(relative)
        if not path.is_file():
            return ""
        return path.read_text(encoding="utf-8", errors="replace")

    def _expect_file(self, relative: str, status: CheckStatus, missing_message: Optional[str] = None) -> bool:
        if self._exists(relative):
            self._pass(f"{relative} exists")
            return True
        message = missing_message or f"{relative} missing"
        {
            CheckStatus.FAIL: self._fail,
            CheckStatus.WARN: self._warn,
            CheckStatus.INFO: self._info,
        }[status](message)
        return False

    def _tool(self, command: List[str], timeout: Optional[int] = None) -> ToolResult:
        """Run an external command in the project directory."""
        timeout = timeout or self.config.command_timeout
        logger.debug(f"Running {' '.join(command)}")
        try:
            result = self.runner(
                command,
                cwd=str(self.project_dir),
                capture_output=True,
                text=True,
                timeout=timeout
            )
        except FileNotFoundError:
            return ToolResult(ok=False, missing=True)
        except subprocess.TimeoutExpired:
            logger.warning(f"{command[0]} timed out after {timeout}s")
            return ToolResult(ok=False, timed_out=True)

        output = (result.stdout or "") + (result.stderr or "")
        return ToolResult(ok=result.returncode == 0, output=output)

    def _missing_tool(self, tool: str, what: str) -> None:
        self._warn(f"{tool} not available, skipping {what}")

    def _env_values(self) -> Dict[str, str]:
        if self._env is None:
            self._env = read_env_file(self._path(".env")) if self._exists(".env") else {}
        return self._env

    def _env_ignored(self) -> bool:
        return ".env" in [line.strip() for line in self._read(".gitignore").splitlines()]

    # =========================================================================
    # Run
    # =========================================================================

    def run(self) -> ValidationReport:
        """Run every check the level enables and return the report."""
        self.out.header("🔍 MCP Auth Server Validation")
        self.out.line(f"Project: {self.project_dir.resolve().name}")
        self.out.line(f"Validation Level: {self.options.level}")
        self.out.line(f"Date: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S UTC')}")

        if self.options.fix:
            self.apply_fixes()

        full = self.options.level == "full"
        build_level = self.options.level in ("standard", "full")

        self.check_file_structure()
        self.check_dependencies()
        if full:
            self.check_security_audit()
        self.check_configuration()
        self.check_environment()
        self.check_typescript()
        if build_level:
            self.check_build()
            self.check_tests()
        self.check_auth()
        if full and not self.options.skip_docker:
            self.check_docker()
        if full:
            self.check_cloud_build()

        self._collect_remediation()
        return self.report

    def apply_fixes(self) -> List[str]:
        """
        Apply the safe automatic remediations.

        Returns:
            Descriptions of what was changed
        """
        applied = []
        env_file = self._path(".env")
        example = self._path(".env.example")

        if not env_file.exists() and example.is_file():
            shutil.copyfile(example, env_file)
            applied.append("Created .env from .env.example")

        if env_file.exists() and not self._env_ignored():
            gitignore = self._path(".gitignore")
            existing = self._read(".gitignore")
            with open(gitignore, "a", encoding="utf-8") as f:
                if existing and not existing.endswith("\n"):
                    f.write("\n")
                f.write(".env\n")
            applied.append("Added .env to .gitignore")

        self._env = None
        for description in applied:
            self.out.info(f"Fixed: {description}")
        return applied

    # =========================================================================
    # Sections
    # =========================================================================

    def check_file_structure(self) -> None:
        self._begin("📁 File Structure")

        self._expect_file("package.json", CheckStatus.FAIL)
        self._expect_file("tsconfig.json", CheckStatus.FAIL)
        self._expect_file(".gitignore", CheckStatus.FAIL)
        self._expect_file("README.md", CheckStatus.WARN)
        self._expect_file("src/index.ts", CheckStatus.FAIL)
        self._expect_file(
            "jest.config.js", CheckStatus.INFO, "jest.config.js not found (testing may not be configured)"
        )

        if self._exists(".env"):
            self._pass(".env exists")
        elif self._exists(".env.example"):
            self._warn(".env missing (found .env.example)")
        else:
            self._fail(".env and .env.example both missing")

        self._expect_file(".dockerignore", CheckStatus.WARN)
        self._expect_file("scripts/build.js", CheckStatus.FAIL)
        self._expect_file("scripts/build-dev.js", CheckStatus.WARN)
        self._expect_file("Dockerfile.development", CheckStatus.WARN)
        self._expect_file("Dockerfile.production", CheckStatus.WARN)
        self._expect_file("cloudbuild.yaml", CheckStatus.WARN)
        self._expect_file(
            "scripts/upload-secrets.ts", CheckStatus.INFO, "scripts/upload-secrets.ts not found"
        )
        self._expect_file("scripts/test-auth.ts", CheckStatus.INFO, "scripts/test-auth.ts not found")

        for directory in ("src", "scripts"):
            if self._path(directory).is_dir():
                self._pass(f"{directory}/ directory exists")
            else:
                self._fail(f"{directory}/ directory missing")

        if self._path("node_modules").is_dir():
            self._pass("node_modules/ directory exists")
        else:
            self._warn("node_modules/ directory missing (run npm install)")

    def check_dependencies(self) -> None:
        self._begin("📦 Dependencies")

        if not self._path("node_modules").is_dir():
            self._fail("node_modules/ missing - run npm install")
            return

        self._pass("node_modules/ exists")

        if self._exists("package-lock.json"):
            self._pass("package-lock.json exists")
        elif self._exists("yarn.lock"):
            self._pass("yarn.lock exists")
        else:
            self._warn("No lock file found (package-lock.json or yarn.lock)")

        for package in CRITICAL_PACKAGES:
            result = self._tool(["npm", "list", package])
            if result.missing:
                self._missing_tool("npm", "dependency checks")
                return
            if result.ok:
                self._pass(f"{package} installed")
            else:
                self._fail(f"{package} not installed")

        result = self._tool(["npm", "list", "--depth=0"])
        if re.search(r"invalid|missing", result.output, re.IGNORECASE):
            self._warn("Dependency version conflicts detected")
        else:
            self._pass("No dependency conflicts")

    def check_security_audit(self) -> None:
        self._begin("🔒 Security Audit")

        result = self._tool(["npm", "audit", "--production", "--json"])
        if result.missing:
            self._missing_tool("npm", "security audit")
            return

        critical, high = _audit_counts(result.output)
        if critical > 0 or high > 0:
            self._fail(f"Found {critical} critical and {high} high severity vulnerabilities")
        else:
            self._pass("No critical or high severity vulnerabilities")

    def check_configuration(self) -> None:
        self._begin("⚙️  Configuration Files")

        if self._exists("package.json"):
            package_json = _load_json(self._read("package.json"))
            if package_json is None:
                self._fail("package.json has invalid JSON syntax")
            else:
                self._pass("package.json has valid JSON syntax")
                if package_json.get("type") == "module":
                    self._pass("package.json has type: module")
                else:
                    self._fail("package.json missing type: module")

                dependencies = {
                    **(package_json.get("devDependencies") or {}),
                    **(package_json.get("dependencies") or {}),
                }
                for package in ("@modelcontextprotocol/sdk", "@prmichaelsen/mcp-auth"):
                    if package in dependencies:
                        self._pass(f"package.json includes {package}")
                    else:
                        self._fail(f"package.json missing {package} dependency")

        if self._exists("tsconfig.json"):
            tsconfig = _load_json(self._read("tsconfig.json"))
            if tsconfig is None:
                self._fail("tsconfig.json has invalid JSON syntax")
            else:
                self._pass("tsconfig.json has valid JSON syntax")
                compiler = tsconfig.get("compilerOptions") or {}
                if compiler.get("strict") is True:
                    self._pass("tsconfig.json has strict mode enabled")
                else:
                    self._warn("tsconfig.json strict mode not enabled")
                if compiler.get("esModuleInterop") is True:
                    self._pass("tsconfig.json has esModuleInterop enabled")
                else:
                    self._warn("tsconfig.json missing esModuleInterop")

        if self._exists("jest.config.js"):
            self._syntax_check("jest.config.js")

        if self._exists("scripts/build.js"):
            if self._syntax_check("scripts/build.js"):
                if "esbuild" in self._read("scripts/build.js"):
                    self._pass("scripts/build.js uses esbuild")
                else:
                    self._warn("scripts/build.js doesn't reference esbuild")

    def _syntax_check(self, relative: str) -> bool:
        result = self._tool(["node", "-c", relative])
        if result.missing:
            self._missing_tool("node", f"{relative} syntax check")
            return False
        if result.ok:
            self._pass(f"{relative} has valid syntax")
            return True
        self._fail(f"{relative} has syntax errors")
        return False

    def check_environment(self) -> None:
        self._begin("🔐 Environment Variables")

        if not self._exists(".env"):
            if self._exists(".env.example"):
                self._warn(".env missing (found .env.example - copy to .env)")
            else:
                self._fail(".env and .env.example both missing")
            return

        self._pass(".env file exists")
        env = self._env_values()

        if env.get("PORT"):
            self._pass(f"PORT is set ({env['PORT']})")
        else:
            self._warn("PORT not set (will use default)")

        for name in ("NODE_ENV", "LOG_LEVEL"):
            if env.get(name):
                self._pass(f"{name} is set ({env[name]})")
            else:
                self._warn(f"{name} not set")

        if PLACEHOLDER_RE.search(self._read(".env")):
            self._warn("Placeholder values detected in .env")
        else:
            self._pass("No placeholder values in .env")

        if self._env_ignored():
            self._pass(".env is in .gitignore")
        else:
            self._fail(".env is NOT in .gitignore (security risk!)")

    def check_typescript(self) -> None:
        self._begin("📘 TypeScript Compilation")

        if not (self._path("node_modules").is_dir() and self._exists("tsconfig.json")):
            self._warn("Skipping TypeScript check (dependencies not installed)")
            return

        result = self._tool(["npx", "tsc", "--noEmit"], timeout=self.config.build_timeout)
        if result.missing:
            self._missing_tool("npx", "TypeScript check")
        elif result.ok:
            self._pass("TypeScript compiles without errors")
        else:
            self._fail("TypeScript compilation failed")
            self._show_output("TypeScript Errors:", result.output, head=20)

    def check_build(self) -> None:
        self._begin("🔨 Build Process")

        if not self._path("node_modules").is_dir():
            self._warn("Skipping build check (dependencies not installed)")
            return

        dist = self._path("dist")
        if dist.is_dir():
            shutil.rmtree(dist)

        result = self._tool(["npm", "run", "build"], timeout=self.config.build_timeout)
        if result.missing:
            self._missing_tool("npm", "build check")
            return
        if not result.ok:
            self._fail("Build failed")
            self._show_output("Build Errors:", result.output, tail=20)
            return

        self._pass("Build completed successfully")

        bundle = self._path("dist/index.js")
        if not bundle.is_file():
            self._fail("dist/index.js not created")
            return

        self._pass("dist/index.js created")
        size = bundle.stat().st_size
        if size > MIN_BUNDLE_SIZE:
            self._pass(f"dist/index.js size is reasonable ({size} bytes)")
        else:
            self._warn(f"dist/index.js is very small ({size} bytes)")

        self._syntax_check("dist/index.js")

    def check_tests(self) -> None:
        self._begin("🧪 Tests")
        if self.options.skip_tests:
            self._info("Skipping tests (--skip-tests flag)")
            return

        src = self._path("src")
        test_files = []
        if src.is_dir():
            test_files = [
                path for path in src.rglob("*.ts")
                if path.name.endswith(".test.ts") or path.name.endswith(".spec.ts")
            ]

        if not test_files:
            self._info("No test files found")
            return

        self._pass(f"Found {len(test_files)} test files")

        if not (self._path("node_modules").is_dir() and self._exists("jest.config.js")):
            self._warn("Skipping test execution (jest not configured)")
            return

        result = self._tool(["npm", "test", "--", "--passWithNoTests"], timeout=self.config.test_timeout)
        if result.missing:
            self._missing_tool("npm", "test run")
        elif result.ok:
            self._pass("All tests passed")
        else:
            self._fail("Tests failed")
            self._show_output("Test Failures:", result.output, tail=30)

    def check_auth(self) -> None:
        self._begin("🔑 Authentication Configuration")

        index = self._read("src/index.ts")
        if self._exists("src/index.ts"):
            if "wrapServer" in index:
                self._pass("wrapServer configuration found")

                if "authProvider" in index:
                    self._pass("authProvider configured")
                else:
                    self._fail("authProvider not configured")

                if "tokenResolver" in index:
                    self._pass("tokenResolver configured (dynamic server)")
                    if self._exists("src/platform-token-resolver.ts"):
                        self._pass("src/platform-token-resolver.ts exists")
                    else:
                        self._fail("src/platform-token-resolver.ts missing")
                else:
                    self._info("No tokenResolver (static server)")
            else:
                self._warn("wrapServer not found in src/index.ts")

            providers = {
                "src/platform-jwt-provider.ts": "JWT provider file exists",
                "src/platform-oauth-provider.ts": "OAuth provider file exists",
                "src/platform-apikey-provider.ts": "API Key provider file exists",
            }
            for relative, message in providers.items():
                if self._exists(relative):
                    self._pass(message)

        if not self._exists(".env"):
            return

        env = self._env_values()

        if "JWT" in index or "jwt" in index:
            secret = env.get("JWT_SECRET", "")
            if not secret:
                self._fail("JWT_SECRET not set")
            elif len(secret) >= MIN_JWT_SECRET_LENGTH:
                self._pass(f"JWT_SECRET is set and strong ({len(secret)} chars)")
            else:
                self._warn(f"JWT_SECRET is weak ({len(secret)} chars, recommend {MIN_JWT_SECRET_LENGTH}+)")

            for name in ("JWT_ISSUER", "JWT_AUDIENCE"):
                if env.get(name):
                    self._pass(f"{name} is set")
                else:
                    self._warn(f"{name} not set")

        if "OAuth" in index or "oauth" in index:
            for name in ("OAUTH_CLIENT_ID", "OAUTH_CLIENT_SECRET"):
                if env.get(name):
                    self._pass(f"{name} is set")
                else:
                    self._fail(f"{name} not set")

        if self._exists("src/platform-token-resolver.ts"):
            if env.get("PLATFORM_API_URL"):
                self._pass("PLATFORM_API_URL is set")
            else:
                self._fail("PLATFORM_API_URL not set (required for dynamic server)")

    def check_docker(self) -> None:
        self._begin("🐳 Docker Configuration")

        version = self._tool(["docker", "--version"])
        if version.missing:
            self._info("Docker not installed (skipping Docker validation)")
            return
        self._pass("Docker is installed")

        if not self._tool(["docker", "info"]).ok:
            self._warn("Docker daemon not running")
            return
        self._pass("Docker daemon is running")

        if self._exists("Dockerfile.development"):
            dockerfile = self._read("Dockerfile.development")
            if "FROM node:" in dockerfile:
                self._pass("Dockerfile.development has valid FROM")
            else:
                self._warn("Dockerfile.development may have invalid FROM")
            if "WORKDIR" in dockerfile:
                self._pass("Dockerfile.development has WORKDIR")
            else:
                self._warn("Dockerfile.development missing WORKDIR")

        if self._exists("Dockerfile.production"):
            dockerfile = self._read("Dockerfile.production")
            if "FROM node:" in dockerfile:
                self._pass("Dockerfile.production has valid FROM")
            else:
                self._warn("Dockerfile.production may have invalid FROM")
            if "USER node" in dockerfile:
                self._pass("Dockerfile.production runs as non-root user")
            else:
                self._warn("Dockerfile.production may run as root (security risk)")
            stages = sum(1 for line in dockerfile.splitlines() if line.startswith("FROM"))
            if stages >= 2:
                self._pass("Dockerfile.production uses multi-stage build")
            else:
                self._warn("Dockerfile.production not using multi-stage build")

        if self._exists(".dockerignore"):
            dockerignore = self._read(".dockerignore")
            if "node_modules" in dockerignore:
                self._pass(".dockerignore excludes node_modules")
            else:
                self._warn(".dockerignore doesn't exclude node_modules")
            if ".env" in dockerignore:
                self._pass(".dockerignore excludes .env files")
            else:
                self._fail(".dockerignore doesn't exclude .env (security risk!)")

    def check_cloud_build(self) -> None:
        self._begin("☁️  Cloud Build Configuration")

        if not self._exists("cloudbuild.yaml"):
            self._info("cloudbuild.yaml not found (deployment not configured)")
            return

        text = self._read("cloudbuild.yaml")
        try:
            yaml.safe_load(text)
            self._pass("cloudbuild.yaml has valid YAML syntax")
        except yaml.YAMLError as e:
            logger.debug(f"cloudbuild.yaml: {e}")
            self._fail("cloudbuild.yaml has invalid YAML syntax")

        if re.search(r"^steps:", text, re.MULTILINE):
            self._pass("cloudbuild.yaml has steps defined")
        else:
            self._fail("cloudbuild.yaml missing steps")

        if re.search(r"^images:", text, re.MULTILINE):
            self._pass("cloudbuild.yaml has images defined")
        else:
            self._warn("cloudbuild.yaml missing images")

        if "_GCP_PROJECT_ID" in text:
            self._pass("cloudbuild.yaml uses _GCP_PROJECT_ID substitution")
        else:
            self._warn("cloudbuild.yaml may have hardcoded project ID")

        if "availableSecrets" in text:
            self._pass("cloudbuild.yaml configures secrets")
        else:
            self._info("cloudbuild.yaml doesn't use secrets")

        if "npm ci" in text or "npm install" in text:
            self._pass("cloudbuild.yaml installs dependencies")
        else:
            self._warn("cloudbuild.yaml may not install dependencies")

        if "npm test" in text:
            self._pass("cloudbuild.yaml runs tests")
        else:
            self._warn("cloudbuild.yaml doesn't run tests")

        if "npm run build" in text:
            self._pass("cloudbuild.yaml builds application")
        else:
            self._warn("cloudbuild.yaml may not build application")

    # =========================================================================
    # Reporting
    # =========================================================================

    def _show_output(self, title: str, output: str, head: int = 0, tail: int = 0) -> None:
        if not self.options.verbose or not output:
            return
        lines = output.splitlines()
        lines = lines[:head] if head else lines[-tail:]
        self.out.line()
        self.out.line(self.out.paint(title, RED))
        for line in lines:
            self.out.line(line)

    def _collect_remediation(self) -> None:
        report = self.report

        if report.failed:
            if not self._path("node_modules").is_dir():
                report.critical_fixes.append(Remediation("Install dependencies", ["npm install"]))
            if not all(self._exists(name) for name in ("package.json", "tsconfig.json", "src/index.ts")):
                report.critical_fixes.append(Remediation("Reinitialize project", ["@mcp-auth-server-base.init"]))
            if report.has("TypeScript compilation failed"):
                report.critical_fixes.append(Remediation("Fix TypeScript errors", ["npx tsc --noEmit"]))
            if self._exists(".env") and not self._env_ignored():
                report.critical_fixes.append(Remediation("Add .env to .gitignore", ["echo '.env' >> .gitignore"]))

        if report.warnings:
            if self._exists(".env") and PLACEHOLDER_RE.search(self._read(".env")):
                report.warning_fixes.append(Remediation(
                    "Replace placeholder values in .env",
                    [
                        "# Generate strong JWT secret:",
                        "node -e \"console.log(require('crypto').randomBytes(32).toString('hex'))\"",
                    ]
                ))
            if not self._exists(".env") and self._exists(".env.example"):
                report.warning_fixes.append(Remediation("Create .env from example", ["cp .env.example .env"]))


def _load_json(text: str) -> Optional[dict]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _audit_counts(output: str) -> tuple:
    """(critical, high) vulnerability counts from `npm audit --json` output."""
    data = _load_json(output) or {}
    vulnerabilities = (data.get("metadata") or {}).get("vulnerabilities") or {}
    try:
        return int(vulnerabilities.get("critical", 0)), int(vulnerabilities.get("high", 0))
    except (TypeError, ValueError):
        return 0, 0
