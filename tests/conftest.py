"""Shared test fixtures — sample contracts and fake semantic collaborators."""

from __future__ import annotations

import asyncio
import textwrap
from typing import Any, Dict, List, Union

import pytest


class FakeCollaborator:
    """Stand-in for the chat-completions client.

    *response* is returned as-is (dict or str); an Exception instance is
    raised instead. *delay* makes the call sleep first.
    """

    def __init__(
        self,
        response: Union[str, Dict[str, Any], Exception, None] = None,
        *,
        delay: float = 0.0,
        model: str = "fake/model",
    ) -> None:
        self.response = response if response is not None else {}
        self.delay = delay
        self.model = model
        self.prompts: List[str] = []

    async def analyze(self, prompt: str):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def vulnerable_contract() -> str:
    """tx.origin on line 12 and selfdestruct on line 40, nothing else."""
    lines = [
        "// SPDX-License-Identifier: MIT",
        "pragma solidity ^0.8.0;",
        "",
        "contract Wallet {",
        "    address public owner;",
        "",
        "    constructor() {",
        "        owner = msg.sender;",
        "    }",
        "",
        "    function withdrawAll() public {",
        "        require(tx.origin == owner);",
        "        emit Withdrawn(owner);",
        "    }",
        "",
        "    event Withdrawn(address who);",
    ]
    lines += [""] * (38 - len(lines))
    lines += [
        "    function kill() public {",
        "        selfdestruct(payable(owner));",
        "    }",
        "}",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def reentrant_contract() -> str:
    """Classic withdraw with the balance update after the call."""
    return textwrap.dedent("""\
        pragma solidity ^0.8.0;

        contract Bank {
            mapping(address => uint256) public balances;

            function deposit() external payable {
                balances[msg.sender] += msg.value;
            }

            function withdraw() external {
                uint256 amount = balances[msg.sender];
                (bool ok, ) = msg.sender.call{value: amount}("");
                require(ok);
                balances[msg.sender] = 0;
            }
        }
    """)


@pytest.fixture
def safe_transfer_contract() -> str:
    """State updated before the transfer (checks-effects-interactions)."""
    return textwrap.dedent("""\
        pragma solidity ^0.8.0;

        contract Vault {
            mapping(address => uint256) public balances;

            function withdraw() external {
                uint256 amount = balances[msg.sender];
                balances[msg.sender] = 0;
                payable(msg.sender).transfer(amount);
            }
        }
    """)


@pytest.fixture
def clean_contract() -> str:
    """A contract with no rule matches at all."""
    return textwrap.dedent("""\
        // SPDX-License-Identifier: MIT
        pragma solidity ^0.8.0;

        import "./IERC20.sol";

        contract Counter {
            uint256 private count;

            event Incremented(uint256 value);

            modifier positive(uint256 v) {
                require(v > 0);
                _;
            }

            function increment(uint256 by) external positive(by) {
                count += by;
                emit Incremented(count);
            }

            function current() public view returns (uint256) {
                return count;
            }
        }
    """)


@pytest.fixture
def no_declaration_source() -> str:
    """Text with a rule match but no contract declaration."""
    return "function f() public {\n    require(tx.origin == msg.sender);\n}\n"


@pytest.fixture
def full_semantic_response() -> Dict[str, Any]:
    return {
        "vulnerabilities": [
            {
                "name": "Reentrancy in withdraw",
                "severity": "critical",
                "category": "reentrancy",
                "description": "External call before balance reset.",
                "location": {"line": 12, "function": "withdraw", "contract": "Bank"},
                "recommendation": "Reset the balance before calling.",
                "confidence": 0.9,
            }
        ],
        "securityScore": 40,
        "qualityScore": 82,
        "gasScore": 64,
        "summary": "One critical reentrancy issue.",
        "recommendations": ["Add a reentrancy guard."],
        "gasOptimizations": [
            {"description": "Cache balances[msg.sender].", "location": "Line 11"}
        ],
        "codeQuality": {"issues": ["Missing NatSpec comments"], "strengths": ["Small surface"]},
    }


@pytest.fixture
def make_collaborator():
    """Factory for FakeCollaborator instances."""
    return FakeCollaborator
