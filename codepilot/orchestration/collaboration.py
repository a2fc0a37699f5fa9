"""Developer/QA collaboration loop for code generation."""

import logging
from typing import Optional

from ..agents.base import CodeGenerator, CodeReviewer
from ..models.messages import GenerationRequest, ReviewRequest
from ..models.session import Result, SessionStatus, StopReason
from ..utils.errors import InvalidRequestError
from ..utils.logging import set_context
from .conversation import Session
from .invocation import Deadline, invoke_agent
from .strategies import aggregate_feedback, has_outstanding_issues

logger = logging.getLogger(__name__)

DEVELOPER_ROLE = "developer"
QA_ROLE = "qa"

REVIEW_INSTRUCTION = (
    "Please review this generated code for correctness, adherence to best practices, "
    "potential issues, and alignment with the original request. Provide patches if "
    "necessary. Focus on constructive feedback that helps improve the code."
)


class CollaborationSession:
    """
    Runs a bounded Developer -> Reviewer loop.

    Each iteration is one developer turn followed by one review turn. Review
    issues become feedback for the next developer turn. The loop ends with:
    - success when the reviewer reports no issues
    - needs_clarification when issues remain after the last iteration
    - error when either agent call fails (no retries)

    Attributes:
        developer: Code generating agent
        reviewer: Code reviewing agent
        max_iterations: Number of developer turns allowed
        deadline_seconds: Optional wall-clock budget for the whole run
    """

    def __init__(
        self,
        developer: CodeGenerator,
        reviewer: CodeReviewer,
        max_iterations: int = 2,
        deadline_seconds: Optional[float] = None,
    ):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self.developer = developer
        self.reviewer = reviewer
        self.max_iterations = max_iterations
        self.deadline_seconds = deadline_seconds

    async def run(
        self,
        feature_request: str,
        language: str = "typescript",
        framework: str = "nextjs",
        initial_code: Optional[str] = None,
    ) -> Result:
        """
        Execute the collaboration loop.

        Args:
            feature_request: What to build
            language: Target programming language
            framework: Target framework
            initial_code: Optional code for the first developer turn

        Returns:
            Result with the best code known when the loop stopped

        Raises:
            InvalidRequestError: If the feature request is empty
        """
        if not feature_request or not feature_request.strip():
            raise InvalidRequestError.missing_field("featureRequest")

        session = Session(max_rounds=self.max_iterations)
        set_context(session_id=session.session_id, phase="start")
        deadline = Deadline(self.deadline_seconds)

        session.append_turn("user", feature_request)
        current_explanation = ""

        for i in range(self.max_iterations):
            session.round_index = i
            logger.info(f"Collaboration iteration {i + 1} of {self.max_iterations}")

            dev_input = GenerationRequest(
                feature_request=feature_request,
                programming_language=language,
                framework=framework,
                existing_code=initial_code if i == 0 else session.current_payload,
                feedback=session.accumulated_feedback.get(QA_ROLE, ""),
            )
            dev_outcome = await invoke_agent(self.developer, dev_input, DEVELOPER_ROLE, deadline)
            if not dev_outcome.ok:
                session.append_turn(
                    DEVELOPER_ROLE, f"Error: {dev_outcome.error.context.message}", is_error=True
                )
                return session.terminate(
                    SessionStatus.ERROR,
                    f"Error during Developer Agent phase: {dev_outcome.error.context.message}",
                    StopReason.AGENT_FAILURE,
                    explanation=current_explanation,
                )

            generated = dev_outcome.output
            session.current_payload = generated.code
            current_explanation = generated.explanation
            session.accumulated_feedback.clear()
            session.append_turn(DEVELOPER_ROLE, generated.code, metadata={"iteration": i + 1})

            review_input = ReviewRequest(code=generated.code, test_results=REVIEW_INSTRUCTION)
            qa_outcome = await invoke_agent(self.reviewer, review_input, QA_ROLE, deadline)
            if not qa_outcome.ok:
                session.append_turn(
                    QA_ROLE, f"Error: {qa_outcome.error.context.message}", is_error=True
                )
                # Developer progress survives a review failure.
                return session.terminate(
                    SessionStatus.ERROR,
                    f"Error during QA Agent phase: {qa_outcome.error.context.message}",
                    StopReason.AGENT_FAILURE,
                    explanation=current_explanation,
                )

            report = qa_outcome.output
            if not has_outstanding_issues(report):
                session.append_turn(QA_ROLE, "No issues found.", metadata={"iteration": i + 1})
                logger.info("QA agent found no issues")
                return session.terminate(
                    SessionStatus.SUCCESS,
                    "Code generated and reviewed successfully by AI agents.",
                    StopReason.NO_ISSUES,
                    explanation=current_explanation,
                )

            feedback = aggregate_feedback(report.fixes)
            session.append_turn(
                QA_ROLE, feedback, metadata={"iteration": i + 1, "issues": len(report.fixes)}
            )

            if i < self.max_iterations - 1:
                session.accumulated_feedback[QA_ROLE] = feedback
                logger.info(f"QA agent raised {len(report.fixes)} issue(s); preparing next iteration")
                continue

            logger.info("Max iterations reached with unresolved issues; needs clarification")
            return session.terminate(
                SessionStatus.NEEDS_CLARIFICATION,
                f"AI agents collaborated but could not fully resolve issues after "
                f"{self.max_iterations} iterations. The QA agent provided the following "
                f"feedback on the last version. Please review the request or the code.",
                StopReason.ROUND_BUDGET_EXHAUSTED,
                last_feedback=feedback,
                explanation=current_explanation,
            )

        logger.warning("Collaboration loop completed without an explicit outcome")
        return session.terminate(
            SessionStatus.NEEDS_CLARIFICATION,
            "Collaboration loop finished. Review the latest code and feedback.",
            StopReason.ROUND_BUDGET_EXHAUSTED,
            last_feedback=session.accumulated_feedback.get(QA_ROLE),
            explanation=current_explanation,
        )
