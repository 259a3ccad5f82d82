"""Local causal language model served through Hugging Face Transformers."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Sequence

import torch
from transformers import AutoModelForCausalLM, AutoTokenizer

from pdfchat.models import PromptMessage

from .base import LLMProvider

LOGGER = logging.getLogger(__name__)


def _resolve_device(preferred: str | None = None) -> str:
    want = (preferred or "auto").strip().lower()
    if want == "cpu":
        return "cpu"
    return "cuda" if torch.cuda.is_available() else "cpu"


class TransformersChatProvider(LLMProvider):
    """Lazily loaded local model; weights are loaded on first use."""

    def __init__(self, model_path: str, *, device: str | None = None) -> None:
        self.model_name = model_path
        self._device = _resolve_device(device)
        self._model: Any = None
        self._tokenizer: Any = None
        self._lock = threading.Lock()

    @property
    def model_loaded(self) -> bool:
        return self._model is not None

    def _ensure_loaded(self) -> None:
        if self._model is not None:
            return
        with self._lock:
            if self._model is not None:
                return
            started = time.perf_counter()
            LOGGER.info("Loading tokenizer and model from %s on %s", self.model_name, self._device)
            tokenizer = AutoTokenizer.from_pretrained(self.model_name)
            dtype = torch.float16 if self._device == "cuda" else torch.float32
            model = AutoModelForCausalLM.from_pretrained(self.model_name, torch_dtype=dtype)
            model.to(self._device)
            model.eval()
            if tokenizer.pad_token_id is None:
                tokenizer.pad_token = tokenizer.eos_token
            self._tokenizer = tokenizer
            self._model = model
            LOGGER.info("Model loaded in %.1fs", time.perf_counter() - started)

    def _render(self, messages: Sequence[PromptMessage]) -> str:
        payload = [message.to_dict() for message in messages]
        if getattr(self._tokenizer, "chat_template", None):
            return self._tokenizer.apply_chat_template(payload, tokenize=False, add_generation_prompt=True)
        lines = [f"{item['role'].upper()}: {item['content']}" for item in payload]
        lines.append("ASSISTANT:")
        return "\n\n".join(lines)

    def complete(
        self,
        messages: Sequence[PromptMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self._ensure_loaded()
        inputs = self._tokenizer(
            self._render(messages),
            return_tensors="pt",
            truncation=True,
            max_length=getattr(self._tokenizer, "model_max_length", 4096),
        ).to(self._device)

        generation_kwargs: dict[str, Any] = {
            "max_new_tokens": max_tokens,
            "pad_token_id": self._tokenizer.pad_token_id,
            "eos_token_id": self._tokenizer.eos_token_id,
        }
        if temperature > 0.0:
            generation_kwargs.update(do_sample=True, temperature=float(temperature))
        else:
            generation_kwargs["do_sample"] = False

        with torch.no_grad():
            output_ids = self._model.generate(**inputs, **generation_kwargs)

        input_length = inputs["input_ids"].shape[1]
        text = self._tokenizer.decode(output_ids[0, input_length:], skip_special_tokens=True)
        return text.strip()

    def preload(self) -> None:
        self._ensure_loaded()


__all__ = ["TransformersChatProvider"]
