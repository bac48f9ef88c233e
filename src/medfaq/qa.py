from __future__ import annotations

import logging

from openai import OpenAI

from .schema import Match
from .settings import OpenAISettings

logger = logging.getLogger(__name__)

NO_MATCH_ANSWER = (
    "I don't have specific information about that topic. "
    "Please consult with a healthcare professional for medical advice."
)
TEMPLATE_DISCLAIMER = "Please consult a healthcare professional for personalized advice."
GENERATION_UNAVAILABLE_NOTE = "(Note: AI response generation is not available without OpenAI configuration)"

SYSTEM_INSTRUCTIONS = (
    "You are a helpful assistant providing information about medications and health. "
    "Always emphasize that your responses are for informational purposes only and not "
    "medical advice. Be concise and helpful."
)


def build_context(chunks: list[str]) -> str:
    return "\n\n".join([f"Chunk {idx + 1}: {chunk}" for idx, chunk in enumerate(chunks)])


def templated_answer(match: Match, note: str | None = None) -> str:
    """Answer that quotes the top match verbatim followed by a disclaimer."""
    answer = f"Based on the available information: {match.text} {TEMPLATE_DISCLAIMER}"
    if note:
        answer = f"{answer} {note}"
    return answer


class AnswerComposer:
    """Turn ranked matches into an answer, degrading to a template on failure."""

    def __init__(self, client: OpenAI | None = None, model: str = "gpt-4.1-mini", max_output_tokens: int = 200):
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens

    def _build_prompt(self, query: str, matches: list[Match]) -> str:
        context_block = build_context([match.text for match in matches])
        return (
            f'Based on the following context, answer the question: "{query}"\n\n'
            f"Context:\n{context_block}\n\n"
            "Provide a concise, helpful answer while emphasizing this is informational only."
        )

    def compose(self, query: str, matches: list[Match]) -> str:
        """Compose an answer for `query` grounded in `matches`.

        Never raises: an empty match list yields the no-information
        disclaimer and any generation failure yields the templated answer.
        """
        if not matches:
            return NO_MATCH_ANSWER

        if self.client is None:
            return templated_answer(matches[0], note=GENERATION_UNAVAILABLE_NOTE)

        try:
            response = self.client.responses.create(
                model=self.model,
                instructions=SYSTEM_INSTRUCTIONS,
                input=self._build_prompt(query, matches),
                max_output_tokens=self.max_output_tokens,
            )
            text = (response.output_text or "").strip()
        except Exception as exc:
            logger.warning("Answer generation failed, using template: %s", exc)
            return templated_answer(matches[0])

        if not text:
            logger.warning("Answer generation returned no text, using template")
            return templated_answer(matches[0])
        return text


def build_composer(settings: OpenAISettings) -> AnswerComposer:
    """Composer backed by OpenAI when an API key is set, template-only otherwise."""
    if not settings.api_key:
        return AnswerComposer(client=None, model=settings.chat_model)
    client = OpenAI(api_key=settings.api_key, timeout=settings.timeout)
    return AnswerComposer(client=client, model=settings.chat_model)
