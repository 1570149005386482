from __future__ import annotations

from video_qa.domain.models import Answer, Question
from video_qa.domain.prompt import PromptSynthesizer
from video_qa.domain.protocols import AnswerModel
from video_qa.infrastructure.storage.transcript_store import TranscriptStore


class QuestionAnswerer:
    def __init__(self, store: TranscriptStore, synthesizer: PromptSynthesizer, model: AnswerModel, logger) -> None:
        self.store = store
        self.synthesizer = synthesizer
        self.model = model
        self.logger = logger

    async def ask(self, question: Question) -> Answer:
        # An empty store is not an error; the model just sees an empty transcript.
        transcript = self.store.get()
        prompt = self.synthesizer.build(transcript, question.timestamp_sec, question.text)
        self.logger.info(
            "ask.started",
            timestamp_sec=question.timestamp_sec,
            transcript_chars=len(transcript),
            prompt_chars=len(prompt),
        )
        text = await self.model.generate(prompt)
        self.logger.info("ask.completed", answer_chars=len(text))
        return Answer(text=text.strip())
