"""
AWS Lambda function to trigger the pipeline via the deployed API.

Deploy this to Lambda and schedule with EventBridge for periodic runs.
"""

import json
import os
import urllib.error
import urllib.request
from typing import Any, Dict, List

DEFAULT_STEPS = "ingest,analyze"


def _post(endpoint: str, timeout: int) -> Dict[str, Any]:
    request = urllib.request.Request(
        endpoint,
        method="POST",
        headers={"Content-Type": "application/json", "User-Agent": "ScrapelensTrigger/1.0"},
    )
    with urllib.request.urlopen(request, timeout=timeout) as response:
        return json.loads(response.read().decode("utf-8") or "{}")


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Trigger ingest and/or analysis via API endpoints.

    Environment Variables:
        API_URL: The service URL (e.g., https://xxx.awsapprunner.com)
        PIPELINE_STEPS: Comma-separated steps to call in order (default: ingest,analyze)
        PIPELINE_TIMEOUT: Request timeout in seconds (default: 300)

    EventBridge Rule Example:
        Schedule: cron(0/15 * * * ? *)  # Every 15 minutes
    """
    api_url = os.environ.get("API_URL")
    if not api_url:
        return {"statusCode": 500, "body": json.dumps({"error": "API_URL environment variable not set"})}

    timeout = int(os.environ.get("PIPELINE_TIMEOUT", "300"))
    steps: List[str] = [s.strip() for s in os.environ.get("PIPELINE_STEPS", DEFAULT_STEPS).split(",") if s.strip()]

    results: Dict[str, Any] = {}
    for step in steps:
        endpoint = f"{api_url.rstrip('/')}/{step}"
        try:
            print(f"Triggering {step} at: {endpoint}")
            results[step] = _post(endpoint, timeout)
            print(f"{step} completed: {json.dumps(results[step], indent=2)}")

        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else str(e)
            print(f"{step} request failed with HTTP {e.code}: {error_body}")
            return {"statusCode": e.code, "body": json.dumps({"success": False, "step": step, "error": f"HTTP {e.code}: {error_body}", "results": results})}

        except urllib.error.URLError as e:
            print(f"{step} request failed: {str(e)}")
            return {"statusCode": 500, "body": json.dumps({"success": False, "step": step, "error": f"Connection error: {str(e)}", "results": results})}

    return {"statusCode": 200, "body": json.dumps({"success": True, "results": results})}


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        os.environ["API_URL"] = sys.argv[1]

    result = lambda_handler({}, None)
    print(json.dumps(result, indent=2))
