"""
Message templates for Telegram bot.

All user-facing messages are defined here for easy localization
and consistent messaging. Uses HTML formatting for Telegram.

Template naming convention:
- WELCOME, HELP - informational messages
- ERROR_* - error messages
- INVALID_* - validation error messages
"""

# =============================================================================
# Informational Messages
# =============================================================================

WELCOME = """
Hi! I am <b>TokenHealth</b>.

Send me a token symbol, name or contract address and I will build its
health report: security, liquidity, tokenomics, community and development.

<i>Examples:</i>
<code>pendle</code>
<code>$UNI</code>
<code>0x808507121b80c02388fad14726482e061b8da827</code>
<code>bsc:0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82</code>
""".strip()

HELP = """
<b>How to use TokenHealth:</b>

1. Send a symbol, name, contract address or <code>network:address</code>
2. Get a 0-100 health score with five category scores

<b>Commands:</b>
/refresh &lt;token&gt; - rescan, ignoring the cached report
/history - your recent scans

<b>Categories:</b>
• Security - contract capabilities, ownership, liquidity lock
• Liquidity - volume, pool depth, TVL
• Tokenomics - holder concentration, mint/burn, taxes
• Community - social reach and growth
• Development - repository activity

<i>Disclaimer: TokenHealth is not financial advice.
Always do your own research before investing.</i>
""".strip()

SCANNING = """
Scanning token...
""".strip()

NO_HISTORY = """
You have no scans yet. Send a token to get started.
""".strip()

# =============================================================================
# Validation Error Messages
# =============================================================================

INVALID_QUERY = """
Please send a token symbol, name or contract address.

<i>Example:</i> <code>pendle</code>
""".strip()

REFRESH_USAGE = """
Usage: <code>/refresh &lt;token&gt;</code>
""".strip()

# =============================================================================
# Error Messages
# =============================================================================

ERROR_GENERIC = """
Something went wrong. Please try again later.
""".strip()

ERROR_TRY_LATER = """
Could not fetch token data.

Please try again in a few minutes.
""".strip()

ERROR_NOT_FOUND = """
Token not found.

Check the symbol, or send the contract address instead.
""".strip()
