"""
Collaborator interfaces and their shipped implementations.

The core only talks to ``MessagingService`` and ``AITextGenerationService``.
``SlackMessagingService`` posts through the Slack Web API and
``BedrockTicketAnalyzer`` asks a Bedrock chat model for a JSON analysis.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

import requests
from langchain_aws import ChatBedrock
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError

from .config import AWSConfig, SlackConfig
from .exceptions import IntegrationError
from .models import AgentRole, MessageDelivery, TicketAnalysis


class MessagingService(ABC):
    """Sends notifications into a conversation thread."""

    @abstractmethod
    async def send_message(self, channel: str, text: str, thread_ts: Optional[str] = None) -> MessageDelivery:
        """Send a message, optionally as a reply in an existing thread."""
        pass


class AITextGenerationService(ABC):
    """Produces a structured analysis of ticket text."""

    @abstractmethod
    async def analyze_ticket(self, text: str) -> TicketAnalysis:
        """Analyze ticket text."""
        pass


class SlackMessagingService(MessagingService):
    """Messaging over Slack's ``chat.postMessage``."""

    def __init__(self, config: SlackConfig, logger: logging.Logger):
        """Initialize the Slack client."""
        self.config = config
        self.logger = logger

    async def send_message(self, channel: str, text: str, thread_ts: Optional[str] = None) -> MessageDelivery:
        if not self.config.bot_token:
            return MessageDelivery(success=False, error="Slack bot token is not configured")

        payload: Dict[str, Any] = {"channel": channel, "text": text}
        if thread_ts:
            payload["thread_ts"] = thread_ts

        try:
            data = await asyncio.to_thread(self._post, "chat.postMessage", payload)
        except requests.RequestException as e:
            self.logger.error(f"Slack request failed: {str(e)}")
            return MessageDelivery(success=False, error=str(e))

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            self.logger.warning(f"Slack rejected message for {channel}: {error}")
            return MessageDelivery(success=False, error=error)

        return MessageDelivery(success=True, ts=data.get("ts"), metadata={"channel": data.get("channel", channel)})

    def _post(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = requests.post(
            f"{self.config.api_url.rstrip('/')}/{method}",
            json=payload,
            headers={
                "Authorization": f"Bearer {self.config.bot_token}",
                "Content-Type": "application/json; charset=utf-8"
            },
            timeout=self.config.timeout
        )
        response.raise_for_status()
        return response.json()


class BedrockTicketAnalyzer(AITextGenerationService):
    """Ticket analysis with a Bedrock chat model."""

    def __init__(self, config: AWSConfig, logger: logging.Logger):
        """Initialize the Bedrock chat model."""
        self.config = config
        self.logger = logger

        try:
            self.llm = ChatBedrock(
                model_id=config.model,
                region_name=config.region,
                model_kwargs={
                    "temperature": config.temperature,
                    "max_tokens": config.max_tokens,
                }
            )
        except Exception as e:
            raise IntegrationError("Failed to initialize Bedrock model", "bedrock", "LLM_INIT_ERROR",
                                   {"original_error": str(e)})

        self.system_prompt = self._create_system_prompt()

    def _create_system_prompt(self) -> str:
        roles = ", ".join(role.value for role in AgentRole)
        return f"""
        You analyze customer support tickets for a web agency.

        Answer with a single JSON object and nothing else, using these keys:
        - "summary": one sentence describing the request
        - "category": one of "technical", "billing", "feature_request", "general"
        - "urgency": one of "low", "medium", "high", "critical"
        - "priority": the priority you would assign
        - "recommended_role": the team role best suited to handle it, one of: {roles}
        - "action_items": a list of up to 5 short next actions
        - "confidence_score": a number between 0 and 1
        """

    async def analyze_ticket(self, text: str) -> TicketAnalysis:
        messages = [
            SystemMessage(content=self.system_prompt),
            HumanMessage(content=text)
        ]

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            self.logger.error(f"Bedrock analysis call failed: {str(e)}")
            raise IntegrationError("AI analysis request failed", "bedrock", "LLM_CALL_ERROR",
                                   {"original_error": str(e)})

        return self._parse_analysis(response.content)

    def _parse_analysis(self, content: str) -> TicketAnalysis:
        """Parse the model's JSON answer, tolerating surrounding prose."""
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise IntegrationError("AI analysis did not contain JSON", "bedrock", "LLM_PARSE_ERROR",
                                   {"content": content[:200]})

        try:
            return TicketAnalysis.model_validate(json.loads(content[start:end + 1]))
        except (json.JSONDecodeError, ValidationError) as e:
            raise IntegrationError("AI analysis could not be parsed", "bedrock", "LLM_PARSE_ERROR",
                                   {"original_error": str(e)})
