"""
attested-claims: witness-attested claims and anonymous provider groups.

⚠️ EXPERIMENTAL — requires crypto review before production use
"""

__version__ = "0.1.0"

DISCLAIMER = (
    "attested-claims is experimental software. The transparent membership "
    "backend reveals the prover's identity secrets and the mock backend "
    "accepts forgeable proofs; neither is anonymous or production ready."
)


def print_disclaimer() -> None:
    print(f"⚠️  {DISCLAIMER}")
