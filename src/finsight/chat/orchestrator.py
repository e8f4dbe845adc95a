"""Multi-turn financial assistant chat with cooperative cancellation."""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..analytics import aggregator
from ..analytics.context import generate_financial_context
from ..config.manager import ApiConfig
from ..constants import CURRENCY_SYMBOL, TOP_EXPENSES_LIMIT
from ..models import Transaction
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import ApiError, CancellationError, ChatBusyError, ParseError
from ..utils.logger import get_logger, set_session_context
from ..llm.client import CompletionClient
from ..llm.insight_generator import estimated_monthly_expense, estimated_monthly_income
from .models import ChatMessage, ChatSession

logger = get_logger()

SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional personal finance advisor, skilled in money management, "
    "budget planning and investment strategy. "
    "Based on the user's transaction history and financial situation, give professional, practical advice. "
    "Keep your answers friendly, professional and specific. "
    "You must analyze and cite the user's actual transaction data rather than give generic advice. "
    "If the user asks about a specific financial area, use their transaction history to personalize the analysis. "
    "The user's financial profile: {context}\n\n"
    "In every reply, refer to the user's actual transaction data to support your analysis and advice."
)

CANCELLED_MESSAGE = "The request has been cancelled."
API_FAILURE_MESSAGE = (
    "Sorry, I'm unable to handle your request for the time being. "
    "Please check your network connection and API configuration and try again later."
)
UNEXPECTED_FAILURE_MESSAGE = "Sorry, an unexpected error occurred while processing your request."


class ChatState(Enum):
    """Observable session state; a cancelled turn passes straight back to IDLE."""
    IDLE = "idle"
    SENDING = "sending"


class TurnOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ChatTurn:
    """Result of one send: the user message, the appended reply and how it ended."""
    outcome: TurnOutcome
    user_message: ChatMessage
    reply: ChatMessage
    error: Optional[Exception] = None


@dataclass
class _PendingRequest:
    session: ChatSession
    user_message: ChatMessage
    history: List[Dict[str, str]]
    records: List[Transaction]
    token: CancellationToken = field(default_factory=CancellationToken)
    result: Future = field(default_factory=Future)
    settled: bool = False


class ChatOrchestrator:
    """
    Runs chat turns on a worker pool, one in-flight request per session.

    The USER message is appended synchronously by ``send``; exactly one
    ASSISTANT entry (reply, apology or cancellation notice) follows it,
    appended by whichever of the worker or ``cancel`` settles the turn first.
    """

    def __init__(
        self,
        api_config: ApiConfig,
        client: Optional[CompletionClient] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        offline: bool = False,
        max_workers: int = 2
    ):
        """
        Initialize chat orchestrator.

        Args:
            api_config: Completion API configuration
            client: Completion client; built from api_config if omitted
            executor: Worker pool; an owned pool is created if omitted
            offline: Answer with local keyword replies instead of the API
            max_workers: Size of the owned pool
        """
        self.api_config = api_config
        self.client = client or CompletionClient(api_config)
        self.offline = offline
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="finsight-chat"
        )
        self._lock = threading.RLock()
        self._pending: Dict[str, _PendingRequest] = {}

    def state(self, session: ChatSession) -> ChatState:
        with self._lock:
            return ChatState.SENDING if session.id in self._pending else ChatState.IDLE

    def send(self, session: ChatSession, user_text: str, records: Sequence[Transaction]) -> "Future[ChatTurn]":
        """
        Append the user's message and request a reply in the background.

        Returns:
            Future resolving to a ChatTurn; it never resolves with an exception

        Raises:
            ChatBusyError: the session already has a request in flight
        """
        with self._lock:
            if session.id in self._pending:
                raise ChatBusyError(f"Session {session.id} already has a request in flight")

            history = session.conversation_history()
            user_message = session.add_user_message(user_text)
            pending = _PendingRequest(
                session=session,
                user_message=user_message,
                history=history,
                records=list(records)
            )
            self._pending[session.id] = pending

        logger.info(f"Chat session {session.id}: IDLE -> SENDING ({len(history)} prior messages)")

        try:
            self._executor.submit(self._run, pending)
        except RuntimeError as e:
            logger.error(f"Could not schedule chat request: {e}")
            self._settle(pending, TurnOutcome.FAILED, UNEXPECTED_FAILURE_MESSAGE, error=e)

        return pending.result

    def cancel(self, session: ChatSession) -> bool:
        """
        Cancel the session's in-flight request.

        The cancellation notice is appended at once and the session is ready
        for another send; a late network result is discarded.

        Returns:
            False when no request was in flight
        """
        with self._lock:
            pending = self._pending.get(session.id)
            if pending is None or pending.settled:
                logger.debug(f"Chat session {session.id}: nothing to cancel")
                return False
            pending.token.cancel()
            return self._settle(pending, TurnOutcome.CANCELLED, CANCELLED_MESSAGE)

    def clear(self, session: ChatSession) -> None:
        """Empty the session transcript."""
        session.clear()
        logger.info(f"Chat session {session.id} cleared")

    def shutdown(self, wait: bool = True) -> None:
        """Cancel outstanding requests and release the owned worker pool."""
        with self._lock:
            sessions = [pending.session for pending in self._pending.values()]
        for session in sessions:
            self.cancel(session)
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def build_system_prompt(self, records: Sequence[Transaction]) -> str:
        return SYSTEM_PROMPT_TEMPLATE.format(context=generate_financial_context(records))

    def build_messages(self, pending: _PendingRequest) -> List[Dict[str, str]]:
        """System prompt, prior transcript, then the new user turn."""
        messages = [{"role": "system", "content": self.build_system_prompt(pending.records)}]
        messages.extend(pending.history)
        messages.append(pending.user_message.to_api_message())
        return messages

    def _run(self, pending: _PendingRequest) -> None:
        set_session_context(pending.session.id)
        try:
            reply = self._request_reply(pending)
        except CancellationError:
            self._settle(pending, TurnOutcome.CANCELLED, CANCELLED_MESSAGE)
        except (ApiError, ParseError) as e:
            logger.error(f"Chat request failed: {e}")
            self._settle(pending, TurnOutcome.FAILED, API_FAILURE_MESSAGE, error=e)
        except Exception as e:
            logger.exception(f"Unexpected error while processing chat request: {e}")
            self._settle(pending, TurnOutcome.FAILED, UNEXPECTED_FAILURE_MESSAGE, error=e)
        else:
            if pending.token.cancelled:
                self._settle(pending, TurnOutcome.CANCELLED, CANCELLED_MESSAGE)
            else:
                self._settle(pending, TurnOutcome.COMPLETED, reply)
        finally:
            set_session_context(None)

    def _request_reply(self, pending: _PendingRequest) -> str:
        token = pending.token
        token.raise_if_cancelled("before building request")

        if self.offline:
            return self.mock_reply(pending.user_message.content, pending.records)

        messages = self.build_messages(pending)
        token.raise_if_cancelled("before transmitting")

        reply = self.client.complete(
            messages,
            temperature=self.api_config.temperature,
            max_tokens=self.api_config.max_tokens,
            cancel_token=token
        )
        if not reply.strip():
            raise ApiError("Completion API returned an empty reply")
        return reply

    def _settle(
        self,
        pending: _PendingRequest,
        outcome: TurnOutcome,
        text: str,
        error: Optional[Exception] = None
    ) -> bool:
        """Append the single terminal ASSISTANT entry; later calls are no-ops."""
        with self._lock:
            if pending.settled:
                return False
            pending.settled = True
            reply = pending.session.add_assistant_message(text)
            self._pending.pop(pending.session.id, None)

        session_id = pending.session.id
        if outcome is TurnOutcome.CANCELLED:
            logger.info(f"Chat session {session_id}: SENDING -> CANCELLED -> IDLE")
        else:
            logger.info(f"Chat session {session_id}: SENDING -> IDLE ({outcome.value})")

        pending.result.set_result(ChatTurn(outcome, pending.user_message, reply, error))
        return True

    @staticmethod
    def mock_reply(user_text: str, records: Sequence[Transaction]) -> str:
        """Keyword-driven reply computed from the transactions, without the API."""
        if not records:
            return (
                "I noticed that you haven't recorded any transaction data yet. To get more personalized "
                "financial advice, please add some transaction records first. Meanwhile, I can answer "
                "general financial questions."
            )

        text = user_text.lower()
        if "budget" in text:
            budget = estimated_monthly_expense(records) * 0.9
            return (
                f"Based on your transaction records, I suggest keeping your monthly budget at around "
                f"{CURRENCY_SYMBOL}{budget:.2f}. Split it across spending categories and track your "
                f"expenses regularly."
            )
        if "saving" in text:
            savings = estimated_monthly_income(records) * 0.2
            return (
                f"Financial experts usually recommend saving 20% of your income. Based on your income, "
                f"consider saving {CURRENCY_SYMBOL}{savings:.2f} per month, split between an emergency "
                f"fund, retirement and short-term goals."
            )
        if "invest" in text:
            return (
                "Before investing, make sure you have an emergency fund covering 3-6 months of living "
                "expenses. Diversify across stocks, bonds and funds according to your risk tolerance."
            )
        if "expense" in text or "spending" in text:
            top = aggregator.top_expense_categories(records, TOP_EXPENSES_LIMIT)
            if not top:
                return (
                    "There is not enough expense data in your records yet. Record more of your daily "
                    "spending so I can give a more precise analysis."
                )
            lines = [f"- {category}: {CURRENCY_SYMBOL}{amount:.2f}" for category, amount in top]
            return (
                "Your main spending categories are:\n" + "\n".join(lines)
                + "\n\nFocus on these to find room for savings."
            )
        return (
            "As your financial advisor I can help with budgets, savings strategies, spending patterns "
            "and investment advice. Which area would you like to look at?"
        )
