"""
Reasoning service.

Wraps an LLM behind four operations:
- propose_candidates: ranked JoinCandidates for a set of datasets
- draft_merge_plan: editable plain-text plan for a semantic merge
- semantic_merge: LLM-produced flat records (always re-sanitized)
- chat: question answering about one dataset

Everything the model returns is treated as untrusted input.
"""

import json
import re
from typing import Any, Dict, List, Optional

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import ValidationError

from datalink.engine.sanitizer import sanitize_rows
from datalink.ingest.loader import summarize_dataset
from datalink.llm.configs import LLMSettings
from datalink.llm.prompts import (
    candidate_prompt,
    chat_system_prompt,
    merge_plan_prompt,
    semantic_merge_prompt,
)
from datalink.models import ChatMessage, Dataset, JoinCandidate
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

PLAN_FALLBACK = "Could not generate plan."
PLAN_ERROR = "Error generating plan. Please write your instructions manually."
CHAT_FALLBACK = "I couldn't generate a response."
CHAT_ERROR = "Sorry, I encountered an error while analyzing the data."

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class ReasoningServiceError(Exception):
    """Base class for reasoning service failures."""


class CandidateDiscoveryError(ReasoningServiceError):
    """Key candidates could not be obtained."""


class SemanticMergeError(ReasoningServiceError):
    """The semantic merge call failed."""


def response_text(message: BaseMessage) -> str:
    """Plain text of a chat model response (string or content blocks)."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def parse_json_text(text: str) -> Any:
    """Parse JSON, tolerating a surrounding markdown code fence."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        stripped = match.group(1)
    return json.loads(stripped)


class ReasoningService:
    """
    LLM-backed discovery, planning, semantic merge and chat.

    The chat model is created lazily with ``init_chat_model`` from the
    configured provider, or can be injected (tests pass a fake model).

    Example:
        >>> service = ReasoningService(LLMSettings(model="gemini-2.5-flash"))
        >>> candidates = await service.propose_candidates([customers, orders])
    """

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        model: Optional[BaseChatModel] = None
    ):
        self.settings = settings or LLMSettings()
        self._model = model

    def _get_model(self) -> BaseChatModel:
        if self._model is None:
            if not self.settings.api_key():
                raise ReasoningServiceError(
                    f"API Key not found in environment variables ({self.settings.api_key_env})"
                )
            self._model = init_chat_model(
                self.settings.model,
                model_provider=self.settings.provider,
                temperature=self.settings.temperature,
            )
            logger.info(f"Initialized chat model {self.settings.provider}:{self.settings.model}")
        return self._model

    def _summaries(self, datasets: List[Dataset]) -> List[Dict[str, Any]]:
        return [summarize_dataset(ds, self.settings.summary_sample_rows) for ds in datasets]

    async def _complete(self, messages: List[BaseMessage]) -> str:
        response = await self._get_model().ainvoke(messages)
        return response_text(response)

    async def propose_candidates(self, datasets: List[Dataset]) -> List[JoinCandidate]:
        """
        Ask the model for join key candidates.

        Args:
            datasets: Datasets to analyze

        Returns:
            Candidates in the order the model ranked them

        Raises:
            CandidateDiscoveryError: On any service, parsing or validation failure
        """
        logger.info(f"Requesting join key candidates for {len(datasets)} datasets")
        try:
            text = await self._complete([HumanMessage(content=candidate_prompt(self._summaries(datasets)))])
            if not text.strip():
                raise CandidateDiscoveryError("No response from the reasoning service")

            payload = parse_json_text(text)
            raw = payload.get("candidates", []) if isinstance(payload, dict) else payload
            if not isinstance(raw, list):
                raise CandidateDiscoveryError("Response did not contain a candidate list")

            candidates = [JoinCandidate.model_validate(item) for item in raw]
        except CandidateDiscoveryError:
            logger.error("Candidate discovery returned no usable candidates")
            raise
        except (ReasoningServiceError, ValueError, ValidationError) as e:
            logger.error(f"Candidate discovery failed: {e}")
            raise CandidateDiscoveryError(str(e)) from e
        except Exception as e:
            logger.error(f"Candidate discovery failed: {e}")
            raise CandidateDiscoveryError("Failed to analyze files for join keys") from e

        logger.info(f"Received {len(candidates)} candidates")
        return candidates

    async def draft_merge_plan(self, datasets: List[Dataset], candidate: JoinCandidate) -> str:
        """
        Draft a plain-text merge plan the user can edit.

        Never raises; failures produce a fallback message.
        """
        try:
            text = await self._complete([
                HumanMessage(content=merge_plan_prompt(self._summaries(datasets), candidate.key_name))
            ])
            return text or PLAN_FALLBACK
        except Exception as e:
            logger.error(f"Plan generation failed: {e}")
            return PLAN_ERROR

    async def semantic_merge(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        instructions: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Let the model merge a sample of each dataset into flat records.

        Args:
            datasets: Datasets to merge (first ``merge_sample_rows`` rows each)
            candidate: Key used as a matching guide
            instructions: User-edited merge plan; a default plan is used if empty

        Returns:
            Sanitized records; empty when the response is not a JSON array

        Raises:
            SemanticMergeError: If the service call itself fails
        """
        samples = [
            {'fileName': ds.name, 'data': ds.rows[:self.settings.merge_sample_rows]}
            for ds in datasets
        ]
        prompt = semantic_merge_prompt(samples, candidate.key_name, instructions)

        try:
            text = await self._complete([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"Semantic merge failed: {e}")
            raise SemanticMergeError("Failed to perform AI Semantic Merge.") from e

        if not text.strip():
            return []

        try:
            raw = parse_json_text(text)
        except ValueError:
            logger.warning(f"Semantic merge response was not valid JSON ({len(text)} chars)")
            return []

        records = sanitize_rows(raw)
        logger.info(f"Semantic merge produced {len(records)} records")
        return records

    async def chat(self, dataset: Dataset, message: str) -> str:
        """
        Answer a question about one dataset, replaying recent chat history.

        Never raises; failures produce a fallback message.
        """
        context = dataset.ai_context
        system = chat_system_prompt(
            summarize_dataset(dataset, self.settings.summary_sample_rows),
            dataset.row_count,
            context.user_description,
            context.column_meanings,
        )

        history: List[BaseMessage] = []
        window = self.settings.chat_history_window
        recent = context.chat_history[-window:] if window > 0 else []
        for turn in recent:
            if turn.role == "model":
                history.append(AIMessage(content=turn.text))
            else:
                history.append(HumanMessage(content=turn.text))

        try:
            text = await self._complete([SystemMessage(content=system), *history, HumanMessage(content=message)])
            return text or CHAT_FALLBACK
        except Exception as e:
            logger.error(f"Chat failed: {e}")
            return CHAT_ERROR

    async def converse(self, dataset: Dataset, message: str) -> Dataset:
        """Run ``chat`` and return a copy of the dataset with both turns recorded."""
        reply = await self.chat(dataset, message)
        history = [
            *dataset.ai_context.chat_history,
            ChatMessage(role="user", text=message),
            ChatMessage(role="model", text=reply),
        ]
        context = dataset.ai_context.model_copy(update={'chat_history': history})
        return dataset.model_copy(update={'ai_context': context})
