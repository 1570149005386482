from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from video_qa.domain.errors import VideoQAError
from video_qa.utils.logger import get_logger

logger = get_logger()


class ProcessError(VideoQAError):
    summary = "External tool failed"

    def __init__(self, cmd: list[str], exit_code: int | None, stderr: str) -> None:
        self.cmd = list(cmd)
        self.exit_code = exit_code
        self.stderr = stderr
        if exit_code is None:
            message = f"Command could not be launched: {' '.join(cmd)}\n{stderr}"
        else:
            message = f"Command failed (code={exit_code}): {' '.join(cmd)}\n{stderr}"
        super().__init__(message.rstrip())


@dataclass(slots=True)
class CommandResult:
    stdout: str
    stderr: str


async def run_command(cmd: list[str]) -> CommandResult:
    """Run an external tool and wait for it to exit.

    Both streams are captured in full. A non-zero exit status or a launch
    failure raises ProcessError; nothing is retried.
    """
    logger.info("command.started", cmd=" ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.warning("command.launch_failed", cmd=cmd[0], error=str(exc))
        raise ProcessError(cmd, None, str(exc)) from exc

    stdout_raw, stderr_raw = await proc.communicate()
    stdout = stdout_raw.decode("utf-8", errors="replace")
    stderr = stderr_raw.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        logger.warning("command.failed", cmd=cmd[0], code=proc.returncode, stderr=stderr[-2000:])
        raise ProcessError(cmd, proc.returncode, stderr)

    logger.info("command.completed", cmd=cmd[0])
    return CommandResult(stdout=stdout, stderr=stderr)


def build_subtitle_download_cmd(
    url: str,
    output_path: Path,
    tool: str = "yt-dlp",
    language: str = "en",
    sub_format: str = "srt",
) -> list[str]:
    return [
        tool,
        "--write-auto-sub",
        "--sub-lang",
        language,
        "--sub-format",
        sub_format,
        "--skip-download",
        "-o",
        str(output_path),
        "--",
        url,
    ]


def build_extract_audio_cmd(
    input_video: Path,
    output_wav: Path,
    tool: str = "ffmpeg",
    audio_bitrate: str = "160k",
    channels: int = 2,
    sample_rate: int = 44100,
) -> list[str]:
    return [
        tool,
        "-y",
        "-i",
        str(input_video),
        "-ab",
        audio_bitrate,
        "-ac",
        str(channels),
        "-ar",
        str(sample_rate),
        "-vn",
        str(output_wav),
    ]


async def extract_audio(input_video: Path, output_wav: Path, **options) -> None:
    await run_command(build_extract_audio_cmd(input_video, output_wav, **options))
