"""
Prompt builder for answer evaluation.

Loads YAML templates and fills them with the question and answers.
"""

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_PATH = Path(__file__).parent.parent / "prompts" / "evaluation_prompts.yaml"


class EvaluationPromptBuilder:
    """Builds chat messages for the evaluation LLM call."""

    def __init__(self, prompts_path: str | Path = DEFAULT_PROMPTS_PATH):
        """
        Initialize prompt builder.

        Args:
            prompts_path: Path to evaluation prompts YAML file
        """
        self.prompts_path = Path(prompts_path)
        self._prompts = self._load_prompts()

    def _load_prompts(self) -> dict:
        """Load prompts from YAML file."""
        if not self.prompts_path.exists():
            raise FileNotFoundError(f"Prompts file not found: {self.prompts_path}")

        with open(self.prompts_path, encoding="utf-8") as f:
            prompts = yaml.safe_load(f)

        logger.info(f"Loaded prompts from {self.prompts_path}")
        return prompts

    def build_evaluation_prompt(
        self,
        question: str,
        reference_answer: str,
        user_answer: str,
    ) -> list[dict[str, str]]:
        """
        Build the evaluation messages.

        Args:
            question: Interview question text
            reference_answer: Expected answer
            user_answer: Transcribed answer of the user

        Returns:
            Messages array for the LLM API call
        """
        templates = self._prompts["answer_evaluation"]

        user_prompt = templates["user_prompt_template"].format(
            question=question,
            user_answer=user_answer,
            reference_answer=reference_answer,
        )

        messages = []
        if templates.get("system_prompt"):
            messages.append({"role": "system", "content": templates["system_prompt"]})
        messages.append({"role": "user", "content": user_prompt})

        return messages
