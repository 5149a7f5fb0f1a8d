# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tether Web — request filter chain and error responses."""

from tether.web.errors import error_response, global_exception_handler
from tether.web.filters import OncePerRequestFilter
from tether.web.ports.filter import CallNext, WebFilter

__all__ = [
    "CallNext",
    "OncePerRequestFilter",
    "WebFilter",
    "error_response",
    "global_exception_handler",
]
