import cv2

from qrlocator.config import load_config
from qrlocator.exceptions import FrameSourceError
from qrlocator.pipeline import ScanPipeline
from qrlocator.scheduling.scheduler import AdaptiveScanScheduler
from qrlocator.scheduling.state import backoff_policy
from qrlocator.sources.camera import CameraSource
from qrlocator.utils.draw import annotate
from qrlocator.utils.fps import FPS
from qrlocator.utils.log import setup_logging


def main(config_path="config/scanner.yaml"):
    setup_logging()
    cfg = load_config(config_path)

    try:
        camera = CameraSource.from_config(cfg.camera)
    except FrameSourceError as ex:
        print(ex)
        return
    pipeline = ScanPipeline(cfg)
    fps = FPS()
    latest = {}

    def cycle():
        frame = camera.read()
        result = pipeline.process_quick(frame)
        latest["frame"] = frame
        latest["result"] = result
        return result

    scheduler = AdaptiveScanScheduler(cycle, cfg.scheduler, policy=backoff_policy())
    scheduler.start()
    print("QR scanner running. Press 'q' to quit.")

    seen = set()
    try:
        while scheduler.running:
            if scheduler.due():
                scheduler.tick()
                if "frame" in latest:
                    result = latest["result"]
                    for code in result.codes:
                        if code.payload not in seen:
                            seen.add(code.payload)
                            print("QR:", code.payload)
                    cv2.imshow("QR Scanner", annotate(latest["frame"], result, fps.tick()))

            wake = scheduler.next_wake
            wait_ms = 1 if wake is None else max(1, int((wake - scheduler.clock()) * 1000))
            if (cv2.waitKey(wait_ms) & 0xFF) == ord("q"):
                break
    finally:
        scheduler.stop()
        camera.release()
        cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
