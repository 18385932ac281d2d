# =============================================================================
# tools/prompts.py  -  Text of the MCP prompts
# =============================================================================
#
# MCP prompts are canned user messages the client can offer ("Analyze my
# charts").  They only ORCHESTRATE existing tools; they never call the API.
#
# When the session isn't ready yet, each prompt starts by telling the agent
# to run check-connection first.  Otherwise the agent would dive straight
# into list-charts and hit "Not authenticated".
# =============================================================================

SETUP_NOTE = (
    "\n\nNote: First check the connection status using the check-connection tool "
    "and set up authentication if needed."
)


def _lead(needs_authentication: bool, verb: str) -> str:
    if needs_authentication:
        return f"After ensuring you're authenticated, {verb.lower()}"
    return verb


def analyze_categories_prompt(needs_authentication: bool) -> str:
    note = SETUP_NOTE if needs_authentication else ""
    return f"""Please analyze the categories in the dashboard.{note}

1. {_lead(needs_authentication, "Use")} the 'list-categories' tool to retrieve all categories
2. Provide the following analysis:
   - Total number of categories
   - Categories by orgId (if multiple organizations exist)
   - Identify any categories with special functions (e.g., those with cascadeFilters=false)
   - Recommend any potential category structure improvements based on the description and hierarchy"""


def analyze_charts_prompt(needs_authentication: bool) -> str:
    note = SETUP_NOTE if needs_authentication else ""
    return f"""Please analyze the charts in the dashboard.{note}

1. {_lead(needs_authentication, "Use")} the 'list-charts' tool to retrieve all charts
2. Provide the following analysis:
   - Total number of charts
   - Distribution of chart types (count of each chartTypeId)
   - Charts by category (if applicable)
   - Any anonymous charts (anonymous=true)
   - Recommendations for chart organization based on descriptions and categories"""


def compare_charts_prompt(
    needs_authentication: bool,
    chart_id_1: str,
    chart_id_2: str,
    export_format: str = "json",
) -> str:
    note = SETUP_NOTE if needs_authentication else ""
    return f"""Please compare the data between two charts.{note}

1. {_lead(needs_authentication, "Perform")} the following actions:
   - Get details for chart {chart_id_1} using the 'get-chart' tool
   - Get details for chart {chart_id_2} using the 'get-chart' tool
   - Export both charts in {export_format or "json"} format using the 'export-chart' tool
   - Compare the data structure and content between the two charts
   - Identify key differences in metrics, dimensions, or data patterns
   - Suggest potential insights based on the comparison"""


def category_usage_prompt(needs_authentication: bool) -> str:
    note = SETUP_NOTE if needs_authentication else ""
    return f"""Please analyze how categories are being used across charts.{note}

1. {_lead(needs_authentication, "Follow")} these steps:
   - List all categories using the 'list-categories' tool
   - List all charts using the 'list-charts' tool
   - For each chart, check which category it belongs to
   - Create a summary of:
     * Most frequently used categories for charts
     * Categories with no associated charts
     * Distribution of chart types within each category
   - Recommend potential reorganization of categories or charts to improve dashboard structure"""
