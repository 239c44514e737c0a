"""Utility subpackage for the generation service"""

from .logger import (
	get_logger,
	log_request,
	log_llm_call,
	log_generation,
	set_request_context,
	get_request_context,
)

__all__ = [
	'get_logger',
	'log_request',
	'log_llm_call',
	'log_generation',
	'set_request_context',
	'get_request_context',
]
