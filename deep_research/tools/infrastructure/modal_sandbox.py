"""ModalCodeRunner — runs model-supplied Python in an ephemeral Modal sandbox."""

import time

import modal

from deep_research.tools.domain.observer import ToolObserver
from deep_research.tools.infrastructure.errors import CodeExecutionError


class ModalCodeRunner:
    """Creates one sandbox per call, runs ``python -c <code>``, and tears it down.

    The sandbox is always terminated, including when execution fails.
    """

    def __init__(self, app_name: str, image: str, observer: ToolObserver) -> None:
        self._app_name = app_name
        self._image = image
        self._observer = observer

    async def run_code(self, code: str) -> str:
        """Execute *code* and return its captured standard output.

        Raises:
            CodeExecutionError: if the sandbox cannot be created, the process
                cannot be run, or it exits with a non-zero status.
        """
        try:
            app = await modal.App.lookup.aio(self._app_name, create_if_missing=True)
            image = modal.Image.from_registry(self._image)
            sandbox = await modal.Sandbox.create.aio(app=app, image=image)
        except Exception as exc:
            # Modal surfaces auth, quota and network failures as assorted types.
            raise CodeExecutionError(reason=f"could not start sandbox: {exc}") from exc

        sandbox_id = str(getattr(sandbox, "object_id", "unknown"))
        self._observer.sandbox_started(sandbox_id=sandbox_id)
        start = time.monotonic()
        exit_code: int | None = None
        try:
            process = await sandbox.exec.aio("python", "-c", code)
            stdout: str = await process.stdout.read.aio()
            exit_code = await process.wait.aio()
            if exit_code != 0:
                stderr: str = await process.stderr.read.aio()
                raise CodeExecutionError(
                    reason=f"script exited with status {exit_code}: {stderr.strip()}"
                )
            return stdout
        except CodeExecutionError:
            raise
        except Exception as exc:
            raise CodeExecutionError(reason=str(exc)) from exc
        finally:
            await sandbox.terminate.aio()
            self._observer.sandbox_completed(
                sandbox_id=sandbox_id,
                exit_code=exit_code,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
