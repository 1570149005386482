from __future__ import annotations

from video_qa.domain.errors import ArtifactMissing
from video_qa.domain.models import SubtitleArtifact, SubtitleFormat, UrlReference
from video_qa.infrastructure.storage.scratch import ScratchDirectory
from video_qa.utils.config import SubtitleToolConfig
from video_qa.utils.media import build_subtitle_download_cmd, run_command


class YtDlpSubtitleAcquirer:
    def __init__(self, scratch: ScratchDirectory, config: SubtitleToolConfig, logger) -> None:
        self.scratch = scratch
        self.config = config
        self.logger = logger

    async def acquire(self, ref: UrlReference, suffix: int | None = None) -> SubtitleArtifact:
        self.scratch.ensure()
        suffix = suffix if suffix is not None else self.scratch.new_suffix()
        target = self.scratch.subtitle_path(suffix)
        cmd = build_subtitle_download_cmd(
            ref.url,
            target,
            tool=self.config.tool,
            language=self.config.language,
            sub_format=self.config.format,
        )

        artifact_path = None
        try:
            await run_command(cmd)
            artifact_path = self.scratch.find_subtitle(stem=target.stem)
            if artifact_path is None:
                raise ArtifactMissing(f"No subtitle file found for {target.stem}")
            raw_text = await self.scratch.read_text(artifact_path)
        finally:
            self.scratch.discard(*{target, *self.scratch.own_files(target.stem)})

        fmt = SubtitleFormat.from_path(artifact_path)
        self.logger.info("subtitles.artifact_read", file=artifact_path.name, format=fmt.value, chars=len(raw_text))
        return SubtitleArtifact(format=fmt, raw_text=raw_text)
