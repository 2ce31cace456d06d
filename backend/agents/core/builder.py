"""
Builder - Self-repairing component build

Responsibilities:
- Allocate an isolated workspace per build request
- Write the candidate source, entry glue and webpack config for each attempt
- Run the bundler and interpret its outcome
- On failure, classify the diagnostic and ask the repairer for a patch
- Give up after a fixed number of repairs with a user friendly error

Attempt chain for one build() call:

    Attempt(0) ──fail──> Repairing ──patch──> Attempt(1) ... Attempt(max)
        │                    │                                   │
     success             repair failed                         fail
        ▼                    ▼                                   ▼
     main.js           FatalFailure  <──────────────────── FatalFailure

Generated files are removed after every attempt and the workspace
directory is removed when the chain ends, whatever the outcome.
"""
import asyncio
import json
import logging
import re
import shutil
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Iterable, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from agents.core.error_classifier import (
    classify_failure,
    format_user_friendly_error,
    log_build_error,
)
from agents.core.repairer import RepairRequester
from errors import CompilerInvocationError, ComponentBuildFailed

logger = logging.getLogger(__name__)

DEFAULT_MAX_REPAIR_RETRIES = 3
ARTIFACT_NAME = "main.js"
COMPONENT_FILE = "index.tsx"
ENTRY_FILE = "entry.tsx"
CONFIG_FILE = "webpack.dynamic.config.js"


class BuildRequest(BaseModel):
    """Input of one build attempt; a repaired attempt gets a new request"""
    model_config = ConfigDict(frozen=True)

    source_code: str
    output_dir: Path
    page_id: str

    def with_source(self, source_code: str) -> "BuildRequest":
        return self.model_copy(update={"source_code": source_code})


def library_name(page_id: str) -> str:
    """Global name the bundle registers, safe as a JS identifier"""
    return f"PageComponent_{re.sub(r'[^A-Za-z0-9_$]', '_', page_id)}"


def generate_entry_content(page_id: str) -> str:
    return f"""import App from './index'
//@ts-ignore
window.{library_name(page_id)} = App
"""


def generate_webpack_config(
    entry_path: Path,
    output_dir: Path,
    page_id: str,
    build_system_dir: Path,
) -> str:
    """
    webpack config bound to one page and an absolute output directory

    The output directory also holds the page's stored files, so the config
    must not set ``output.clean``.
    """
    node_modules = build_system_dir / "node_modules"

    return f"""
const path = require('path');

module.exports = {{
  mode: 'production',
  entry: {json.dumps(str(entry_path))},
  output: {{
    path: {json.dumps(str(output_dir))},
    filename: '{ARTIFACT_NAME}',
    library: '{library_name(page_id)}',
    libraryTarget: 'umd',
    globalObject: 'this'
  }},
  module: {{
    rules: [
      {{
        test: /\\.tsx?$/,
        use: {{
          loader: 'ts-loader',
          options: {{
            configFile: {json.dumps(str(build_system_dir / "tsconfig.json"))},
            onlyCompileBundledFiles: true,
          }},
        }},
        exclude: /node_modules/,
      }},
      {{
        test: /\\.css$/,
        use: ['style-loader', 'css-loader'],
      }},
    ],
  }},
  resolve: {{
    extensions: ['.tsx', '.ts', '.js', '.jsx'],
    modules: [{json.dumps(str(node_modules))}, 'node_modules'],
  }},
  resolveLoader: {{
    modules: [{json.dumps(str(node_modules))}, 'node_modules'],
  }},
  externals: {{
    'react': 'React',
    'react-dom': 'ReactDOM',
    'react-router': 'ReactRouter',
    'react-router-dom': 'ReactRouterDOM',
    'lodash': '_'
  }},
  optimization: {{
    minimize: true,
  }},
  stats: 'errors-warnings',
}};
"""


# ============================================================================
# Compiler runner
# ============================================================================

class CompileResult(NamedTuple):
    returncode: int
    stdout: str
    stderr: str

    @property
    def diagnostic(self) -> str:
        # webpack reports module errors on stdout, node crashes on stderr
        return "\n".join(part for part in (self.stderr.strip(), self.stdout.strip()) if part)


class CompilerRunner(ABC):
    """Runs the external bundler against a generated config"""

    @abstractmethod
    async def run(self, config_path: Path, cwd: Path) -> CompileResult:
        ...


class WebpackRunner(CompilerRunner):
    """Runs ``npx webpack --config <config>`` as a subprocess"""

    def __init__(self, npx_bin: str = "npx", timeout: Optional[float] = 300):
        self.npx_bin = npx_bin
        self.timeout = timeout

    async def run(self, config_path: Path, cwd: Path) -> CompileResult:
        cmd = [self.npx_bin, "webpack", "--config", str(config_path)]
        logger.info(f"[webpack] Running: {' '.join(cmd)} (cwd={cwd})")

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise CompilerInvocationError(f"Build timeout after {self.timeout} seconds")

        return CompileResult(
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


# ============================================================================
# Workspaces
# ============================================================================

class BuildWorkspace:
    """Exclusive directory holding the generated files of one build call"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.src_dir = self.path / "src"
        self.component_path = self.src_dir / COMPONENT_FILE
        self.entry_path = self.src_dir / ENTRY_FILE
        self.config_path = self.path / CONFIG_FILE

    def generated_files(self) -> List[Path]:
        return [self.component_path, self.entry_path, self.config_path]

    def release(self) -> None:
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[workspace_release] Failed to remove {self.path}: {e}")


class WorkspaceArena:
    """Hands out uniquely named workspaces under a common root"""

    def __init__(self, root: Path):
        self.root = Path(root)

    @asynccontextmanager
    async def acquire(self, page_id: str) -> AsyncIterator[BuildWorkspace]:
        self.root.mkdir(parents=True, exist_ok=True)
        safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", page_id)[:64]
        workspace = BuildWorkspace(self.root / f"{safe_id}-{uuid.uuid4().hex[:12]}")
        workspace.src_dir.mkdir(parents=True)
        logger.debug(f"[workspace_acquire] page_id={page_id} path={workspace.path}")
        try:
            yield workspace
        finally:
            workspace.release()


def cleanup_files(files: Iterable[Path]) -> None:
    """Delete files, logging (not raising) on failure"""
    for file in files:
        try:
            file.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[file_cleanup_failed] Failed to cleanup file {file}: {e}")


# ============================================================================
# Orchestrator
# ============================================================================

class ComponentBuilder:
    """
    Builds generated React components into UMD bundles, repairing them
    with the model when the bundler rejects them.
    """

    def __init__(
        self,
        runner: CompilerRunner,
        repairer: RepairRequester,
        workspace_root: Path,
        build_system_dir: Path,
        max_repair_retries: int = DEFAULT_MAX_REPAIR_RETRIES,
        max_concurrent_builds: int = 2,
    ):
        self.runner = runner
        self.repairer = repairer
        self.workspaces = WorkspaceArena(workspace_root)
        self.build_system_dir = Path(build_system_dir).resolve()
        self.max_repair_retries = max_repair_retries
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent_builds))

    async def build(self, request: BuildRequest) -> Path:
        """
        Build a component, repairing it up to ``max_repair_retries`` times

        Args:
            request: Source, output directory and page id

        Returns:
            Path of the built bundle (``<output_dir>/main.js``)

        Raises:
            ComponentBuildFailed: With a user friendly message once retries are exhausted
        """
        request = request.model_copy(update={"output_dir": Path(request.output_dir).resolve()})

        async with self._semaphore:
            async with self.workspaces.acquire(request.page_id) as workspace:
                return await self._build_with_retry(request, workspace)

    async def _build_with_retry(self, request: BuildRequest, workspace: BuildWorkspace) -> Path:
        page_id = request.page_id
        current = request
        attempt = 0

        while True:
            try:
                return await self._run_attempt(current, workspace, attempt)
            except Exception as failure:
                logger.error(
                    f"[build_attempt_failed] page_id={page_id} attempt={attempt + 1} "
                    f"source_len={len(current.source_code)} error={str(failure)[:300]}"
                )

                if attempt >= self.max_repair_retries:
                    raise self._fatal_failure(page_id, workspace, failure) from failure

                error = classify_failure(failure)
                try:
                    patched = await self.repairer.repair(current.source_code, error, page_id, attempt)
                except Exception as repair_error:
                    logger.error(
                        f"[ai_fix_failed] page_id={page_id} attempt={attempt + 1} error={repair_error}"
                    )
                    raise self._fatal_failure(page_id, workspace, failure) from failure

                current = current.with_source(patched)
                attempt += 1

    async def _run_attempt(self, request: BuildRequest, workspace: BuildWorkspace, attempt: int) -> Path:
        page_id = request.page_id
        logger.info(f"[build_start] page_id={page_id} attempt={attempt + 1} output_dir={request.output_dir}")

        try:
            request.output_dir.mkdir(parents=True, exist_ok=True)
            workspace.src_dir.mkdir(parents=True, exist_ok=True)

            workspace.component_path.write_text(request.source_code, encoding="utf-8")
            workspace.entry_path.write_text(generate_entry_content(page_id), encoding="utf-8")
            workspace.config_path.write_text(
                generate_webpack_config(
                    workspace.entry_path,
                    request.output_dir,
                    page_id,
                    self.build_system_dir,
                ),
                encoding="utf-8",
            )

            result = await self.runner.run(workspace.config_path, self.build_system_dir)
            if result.returncode != 0:
                raise CompilerInvocationError(result.diagnostic, result.returncode)

            if result.stderr.strip():
                logger.warning(f"[build_stderr] page_id={page_id} stderr={result.stderr[:500]}")

            logger.info(f"[build_success] page_id={page_id} attempt={attempt + 1}")
            return request.output_dir / ARTIFACT_NAME
        finally:
            cleanup_files(workspace.generated_files())

    def _fatal_failure(
        self,
        page_id: str,
        workspace: BuildWorkspace,
        failure: BaseException,
    ) -> ComponentBuildFailed:
        error = classify_failure(failure)
        log_build_error(page_id, error)

        # Best effort; the workspace directory itself goes away on release
        cleanup_files(workspace.generated_files())

        return ComponentBuildFailed(format_user_friendly_error(error), error=error)


__all__ = [
    "BuildRequest",
    "CompileResult",
    "CompilerRunner",
    "WebpackRunner",
    "BuildWorkspace",
    "WorkspaceArena",
    "ComponentBuilder",
    "generate_entry_content",
    "generate_webpack_config",
    "library_name",
]
