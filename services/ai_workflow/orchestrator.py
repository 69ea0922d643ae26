"""
orchestrator.py
Drives one query through classification, retrieval, synthesis and validation,
and wires the stages together for the host application.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypeVar

from services.ai_workflow.agents.classifier import ClassificationStage, estimate_confidence
from services.ai_workflow.agents.retriever import RetrievalStage
from services.ai_workflow.agents.synthesizer import SynthesisStage
from services.ai_workflow.agents.validator import ValidationStage
from services.ai_workflow.data_model import (
    AgentPhase,
    ContextBundle,
    DashboardOutput,
    ExecutionState,
)
from services.ai_workflow.utils.content_services import (
    ContentBackend,
    HuggingFaceContentBackend,
    OpenAIContentBackend,
    PerplexityContentBackend,
)
from services.ai_workflow.utils.external_knowledge import KnowledgeSource, StaticKnowledgeSource
from services.ai_workflow.utils.openai_utils import ChatCompletion, ChatCompletionClient
from services.constants import PINECONE_API_KEY
from services.embeddings import EmbeddingProvider, get_embedder
from services.errors import PipelineFatalError
from services.logs import InteractionLog
from services.memory.user_memory import UserMemoryStore
from services.vectorstores.pinecone_store import PineconeStore, VectorStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardOrchestrator:
    """
    One run of the pipeline: Classification -> Retrieval -> Synthesis ->
    Validation -> Completed, or Error.

    Phases run strictly in order, without retries. A failure in the first three
    phases ends the run with PipelineFatalError. A failure in validation is
    logged and the synthesized output is returned as-is.
    """

    def __init__(
        self,
        classifier: ClassificationStage,
        retriever: RetrievalStage,
        synthesizer: SynthesisStage,
        validator: ValidationStage,
    ):
        self.classifier = classifier
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.validator = validator
        self.state: Optional[ExecutionState] = None

    def _run_phase(self, phase: AgentPhase, step: Callable[[], T]) -> T:
        '''
            Run one phase, recording its duration and status.
        '''
        self.state.phase = phase
        logger.info(f"[Orchestrator] Phase: {phase.value}")
        started = time.perf_counter()
        try:
            result = step()
        except Exception:
            self._record_timing(phase, started, "failed")
            raise
        self._record_timing(phase, started, "completed")
        return result

    def _record_timing(self, phase: AgentPhase, started: float, status: str) -> None:
        meta = self.state.metadata
        meta.phase_timings[phase.value] = round((time.perf_counter() - started) * 1000, 2)
        meta.phase_status[phase.value] = status

    def execute(self, query: str, user_id: str) -> DashboardOutput:
        """
        Run the full pipeline for one query.

        Returns:
            The validated (and possibly auto-corrected) dashboard output

        Raises:
            PipelineFatalError: classification, retrieval or synthesis failed
        """
        self.state = ExecutionState(query=query, user_id=user_id)
        decisions = self.state.metadata.decisions
        logger.info(f"[Orchestrator] Starting pipeline for user {user_id}: {query}")

        try:
            classification, provider = self._run_phase(
                AgentPhase.CLASSIFICATION,
                lambda: self.classifier.classify_with_provider(query),
            )
            self.state.classification = classification
            confidence, _ = estimate_confidence(query, classification, provider)
            decisions["classification"] = {
                **classification.to_dict(),
                "provider": provider,
                "confidence": confidence,
            }

            if self.retriever.is_needed(classification):
                bundle = self._run_phase(
                    AgentPhase.RETRIEVAL,
                    lambda: self.retriever.retrieve(query, user_id, classification),
                )
            else:
                logger.info("[Orchestrator] Retrieval not required, skipping")
                bundle = ContextBundle(strategy="skipped")
                self.state.metadata.phase_timings[AgentPhase.RETRIEVAL.value] = 0.0
                self.state.metadata.phase_status[AgentPhase.RETRIEVAL.value] = "skipped"
            self.state.context_bundle = bundle
            decisions["retrieval"] = {
                "strategy": bundle.strategy,
                "chunks": len(bundle.chunks),
                "citations": len(bundle.citations),
                "user_context": bool(bundle.user_context),
            }

            output, provider = self._run_phase(
                AgentPhase.SYNTHESIS,
                lambda: self.synthesizer.synthesize_with_provider(query, bundle, classification),
            )
            self.state.dashboard_output = output
            decisions["synthesis"] = {
                "provider": provider,
                "output_kind": output.visualization_kind.value,
                "sections": len(output.data) if isinstance(output.data, list) else 0,
                "sublinks": len(output.sublinks or []),
            }

        except Exception as e:
            failed_phase = self.state.phase.value
            self.state.error = str(e)
            self.state.phase = AgentPhase.ERROR
            logger.error(f"[Orchestrator] Pipeline failed during {failed_phase}: {e}", exc_info=True)
            raise PipelineFatalError(
                f"Pipeline failed during {failed_phase}: {e}",
                phase=failed_phase,
                summary=self.get_execution_summary(),
            ) from e

        try:
            result = self._run_phase(
                AgentPhase.VALIDATION,
                lambda: self.validator.validate(output, classification),
            )
            self.state.validation_result = result
            if result.corrected_output is not None:
                self.state.dashboard_output = result.corrected_output
            decisions["validation"] = {
                "is_valid": result.is_valid,
                "errors": len(result.errors),
                "warnings": len(result.warnings),
                "auto_corrected": result.corrected_output is not None,
            }
            if not result.is_valid:
                logger.warning(f"[Orchestrator] Validation errors: {result.errors}")
        except Exception as e:
            logger.warning(f"[Orchestrator] Validation failed, keeping synthesized output: {e}")
            decisions["validation"] = {"is_valid": None, "error": str(e)}

        self.state.phase = AgentPhase.COMPLETED
        logger.info(f"[Orchestrator] Completed in {self._total_time_ms()} ms")
        return self.state.dashboard_output

    def _total_time_ms(self) -> float:
        return round((time.perf_counter() - self.state.metadata.start_time) * 1000, 2)

    def get_state(self) -> Optional[ExecutionState]:
        return self.state

    def get_execution_summary(self) -> Dict[str, Any]:
        """Phase timings, statuses and decisions of the current run."""
        if self.state is None:
            return {}
        meta = self.state.metadata
        return {
            "query": self.state.query,
            "user_id": self.state.user_id,
            "phase": self.state.phase.value,
            "started_at": meta.started_at,
            "total_time_ms": self._total_time_ms(),
            "phase_timings_ms": dict(meta.phase_timings),
            "phase_status": dict(meta.phase_status),
            "decisions": dict(meta.decisions),
            "error": self.state.error,
        }


class DashboardPipeline:
    """
    Owns the stages, the memory store and the interaction log.

    Stages are stateless, so one pipeline serves many sessions. Each run gets
    its own DashboardOrchestrator.
    """

    def __init__(
        self,
        classifier: ClassificationStage,
        retriever: RetrievalStage,
        synthesizer: SynthesisStage,
        validator: ValidationStage,
        memory_store: Optional[UserMemoryStore] = None,
        interaction_log: Optional[InteractionLog] = None,
    ):
        self.classifier = classifier
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.validator = validator
        self.memory_store = memory_store
        self.interaction_log = interaction_log or InteractionLog()

    def new_orchestrator(self) -> DashboardOrchestrator:
        return DashboardOrchestrator(self.classifier, self.retriever, self.synthesizer, self.validator)

    def run_pipeline_with_monitoring(self, query: str, user_id: str) -> Tuple[DashboardOutput, Dict[str, Any]]:
        """
        Run the pipeline and return the output with its execution summary.

        Raises:
            PipelineFatalError: the run could not produce an output
        """
        orchestrator = self.new_orchestrator()
        try:
            output = orchestrator.execute(query, user_id)
        except PipelineFatalError as e:
            self.interaction_log.log_run(query, user_id, "", "", e.summary, success=False)
            raise

        summary = orchestrator.get_execution_summary()
        self.interaction_log.log_run(query, user_id, output.title, output.visualization_kind.value, summary)
        return output, summary

    def run_pipeline(self, query: str, user_id: str) -> DashboardOutput:
        output, _ = self.run_pipeline_with_monitoring(query, user_id)
        return output

    def record_interaction(
        self,
        user_id: str,
        user_text: str,
        assistant_text: str,
        session_id: Optional[str] = None,
        topic_label: Optional[str] = None,
    ) -> None:
        """
        Store a finished turn in the user's memory. Never raises.
        """
        if self.memory_store is None:
            return
        try:
            self.memory_store.process_conversation(user_id, user_text, assistant_text, session_id, topic_label)
        except Exception as e:
            logger.error(f"[Pipeline] Failed to record interaction: {e}", exc_info=True)


def build_pipeline(
    chat: Optional[ChatCompletion] = None,
    embedder: Optional[EmbeddingProvider] = None,
    vector_store: Optional[VectorStore] = None,
    knowledge_source: Optional[KnowledgeSource] = None,
    content_backends: Optional[Sequence[ContentBackend]] = None,
) -> DashboardPipeline:
    """
    Build the production pipeline from configuration.
    Any collaborator can be passed in to replace its default.
    """
    chat = chat or ChatCompletionClient()
    embedder = embedder or get_embedder()
    if vector_store is None and PINECONE_API_KEY:
        vector_store = PineconeStore()
    if content_backends is None:
        content_backends = [OpenAIContentBackend(chat), PerplexityContentBackend(), HuggingFaceContentBackend()]

    memory_store = UserMemoryStore(vector_store, embedder)
    logger.info(
        f"[Pipeline] chat={'on' if chat.is_available() else 'off'}, "
        f"memory={'on' if memory_store.is_memory_enabled() else 'off'}, "
        f"content_backends={[b.name for b in content_backends if b.is_available()]}"
    )

    return DashboardPipeline(
        classifier=ClassificationStage(chat),
        retriever=RetrievalStage(memory_store, knowledge_source or StaticKnowledgeSource()),
        synthesizer=SynthesisStage(chat, content_backends),
        validator=ValidationStage(),
        memory_store=memory_store,
    )
