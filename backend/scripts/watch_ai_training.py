from __future__ import annotations

import asyncio
import json
import os
import time
from typing import Any
from urllib import error, request

import websockets

# ---------------------------------------------------------------------------
# Hardcoded configuration
# ---------------------------------------------------------------------------
BASE_URL = "http://127.0.0.1:8000"

# Model to build and the dataset it trains on.
MODEL_TYPE = "classification"
MODEL_NAME = "Spam Detective"
DATASET_ID = "email-classification"

# Sample inputs sent to /predict once training is done, per model type.
SAMPLE_INPUTS: dict[str, Any] = {
    "regression": [3, 2, 1800, 2005],
    "classification": [8.0, 4.0, 15.0, 60.0],
    "recommendation": {"userId": "user_1"},
    "chatbot": "Hello, how are you?",
}

# Websocket behavior.
WS_OPEN_TIMEOUT_SECONDS = 60


class Color:
    RESET = "\033[0m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    MAGENTA = "\033[95m"


USE_COLOR = os.getenv("NO_COLOR") is None


def c(text: str, color: str) -> str:
    if not USE_COLOR:
        return text
    return f"{color}{text}{Color.RESET}"


def now_ts() -> str:
    return time.strftime("%H:%M:%S")


def log_info(msg: str) -> None:
    print(f"{c('[INFO]', Color.BLUE)} {c(now_ts(), Color.CYAN)} {msg}")


def log_progress(msg: str) -> None:
    print(f"{c('[TRAIN]', Color.MAGENTA)} {c(now_ts(), Color.CYAN)} {msg}")


def log_success(msg: str) -> None:
    print(f"{c('[DONE]', Color.GREEN)} {c(now_ts(), Color.CYAN)} {msg}")


def log_warn(msg: str) -> None:
    print(f"{c('[WARN]', Color.YELLOW)} {c(now_ts(), Color.CYAN)} {msg}")


def log_error(msg: str) -> None:
    print(f"{c('[ERROR]', Color.RED)} {c(now_ts(), Color.CYAN)} {msg}")


def http_json(method: str, url: str, payload: dict[str, Any] | None = None) -> Any:
    data = None
    headers = {"Accept": "application/json"}
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"

    req = request.Request(url=url, method=method, data=data, headers=headers)
    try:
        with request.urlopen(req, timeout=120) as resp:
            body = resp.read().decode("utf-8")
            if not body:
                return None
            return json.loads(body)
    except error.HTTPError as exc:
        body = exc.read().decode("utf-8")
        details = body if body else str(exc)
        raise RuntimeError(f"{method} {url} failed ({exc.code}): {details}") from exc
    except error.URLError as exc:
        raise RuntimeError(f"Cannot reach backend at {url}: {exc.reason}") from exc


def ws_base_url(http_base: str) -> str:
    if http_base.startswith("https://"):
        return "wss://" + http_base.removeprefix("https://")
    if http_base.startswith("http://"):
        return "ws://" + http_base.removeprefix("http://")
    raise ValueError("BASE_URL must start with http:// or https://")


def print_ws_message(message: dict[str, Any]) -> None:
    msg_type = message.get("type")
    if msg_type == "training_progress":
        log_progress(f"progress={float(message.get('progress', 0.0)):.1f}% trained={message.get('is_trained')}")
        return

    if msg_type == "training_done":
        log_success(f"training_done accuracy={float(message.get('accuracy', 0.0)):.1f}%")
        return

    if msg_type == "error":
        log_error(f"training_error: {message.get('error')}")
        return

    log_info(f"ws_message: {json.dumps(message)}")


async def stream_training(model_id: str) -> dict[str, Any] | None:
    ws_url = f"{ws_base_url(BASE_URL)}/ws/ai/training/{model_id}"
    log_info(f"Connecting websocket: {ws_url}")

    try:
        async with websockets.connect(ws_url, open_timeout=WS_OPEN_TIMEOUT_SECONDS) as websocket:
            while True:
                raw = await websocket.recv()
                message = json.loads(raw)
                print_ws_message(message)

                if message.get("type") in {"training_done", "error", "stopped"}:
                    return message

    except Exception as exc:
        log_warn(f"WebSocket interrupted: {exc}")
        return None


def main() -> int:
    try:
        created = http_json("POST", f"{BASE_URL}/api/ai/models", {"model_type": MODEL_TYPE, "name": MODEL_NAME})
        model_id = created["model_id"]
        log_info(f"Created model_id={model_id} type={MODEL_TYPE}")

        http_json("POST", f"{BASE_URL}/api/ai/models/{model_id}/train", {"dataset_id": DATASET_ID})
        final = asyncio.run(stream_training(model_id))
        if final is None or final.get("type") != "training_done":
            log_error("Training did not complete.")
            return 1

        sample = SAMPLE_INPUTS[MODEL_TYPE]
        result = http_json("POST", f"{BASE_URL}/api/ai/models/{model_id}/predict", {"input": sample})
        log_success(f"predict({json.dumps(sample)}) -> {json.dumps(result['prediction'])}")

        bundle = http_json("GET", f"{BASE_URL}/api/ai/models/{model_id}/export")
        log_info(f"Export bundle: name={bundle['name']} dataset={bundle['dataset']} accuracy={bundle['accuracy']:.1f}")
        return 0

    except KeyboardInterrupt:
        log_warn("Interrupted by user. Exiting.")
        return 130
    except RuntimeError as exc:
        log_error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
