import argparse
import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import httpx


class UploadSmokeTest:
    """Uploads an mp4 through the gateway and checks the returned URL actually serves bytes."""

    def __init__(self, gateway_url: str, output_dir: Path, client: Optional[httpx.Client] = None):
        self.gateway_url = gateway_url.rstrip("/")
        self.output_dir = output_dir
        self.client = client or httpx.Client(timeout=60.0)

    def upload(self, video_path: Path, video_id: str, user_id: str) -> Dict[str, Any]:
        url = f"{self.gateway_url}/function/upload-video"
        headers = {
            "Content-Type": "video/mp4",
            "X-Video-ID": video_id,
            "X-User-ID": user_id,
        }
        response = self.client.post(url, content=video_path.read_bytes(), headers=headers)
        response.raise_for_status()
        return response.json()

    def check_delivery(self, video_url: str) -> int:
        # a ranged GET is enough to prove the signed URL is valid
        response = self.client.get(video_url, headers={"Range": "bytes=0-1023"})
        response.raise_for_status()
        return len(response.content)

    def run(self, video_path: Path, video_id: str, user_id: str) -> Dict[str, Any]:
        start_time = time.perf_counter()
        result: Dict[str, Any] = {"timestamp": datetime.now().isoformat(), "video": str(video_path)}
        try:
            video = self.upload(video_path, video_id, user_id)
            result["video_url"] = video.get("video_url")
            result["delivered_bytes"] = self.check_delivery(video["video_url"])
            result["status"] = "success"
        except (httpx.HTTPError, KeyError, ValueError) as e:
            result["status"] = "failure"
            result["error"] = str(e)
        result["duration_ms"] = int((time.perf_counter() - start_time) * 1000)
        return result

    def save_result(self, result: Dict[str, Any]) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = self.output_dir / f"upload_smoke_{int(time.time())}.json"
        with open(filename, "w") as f:
            json.dump(result, f, indent=2)
        return filename


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Tubely upload smoke test")
    parser.add_argument("--gateway", default="http://localhost:8080", help="OpenFaaS gateway URL")
    parser.add_argument("--video", required=True, type=Path, help="Local mp4 to upload")
    parser.add_argument("--video-id", required=True, help="Existing video record ID")
    parser.add_argument("--user-id", required=True, help="ID of the user owning the video")
    parser.add_argument("--output", default="experiments", help="Output directory for results")

    args = parser.parse_args()

    smoke = UploadSmokeTest(args.gateway, Path(args.output))
    outcome = smoke.run(args.video, args.video_id, args.user_id)
    print(f"{outcome['status']}: results saved to {smoke.save_result(outcome)}")
