import time

from chipcore import Machine, framebuffer_to_text
from chipcore.logging import ConsoleCallback, ConsoleLogger, MetricsCallback, run_frames

# Counts up in V5 and redraws its last two decimal digits
COUNTER_ROM = bytes([
    0x80, 0x50,  # 200: V0 = V5
    0xA3, 0x00,  # 202: I = 0x300
    0xF0, 0x33,  # 204: BCD V0 -> [I]
    0xF2, 0x65,  # 206: V0..V2 = [I]
    0x00, 0xE0,  # 208: CLS
    0x63, 0x00,  # 20A: V3 = 0
    0x64, 0x00,  # 20C: V4 = 0
    0xF1, 0x29,  # 20E: I = glyph V1
    0xD3, 0x45,  # 210: draw tens
    0x63, 0x06,  # 212: V3 = 6
    0xF2, 0x29,  # 214: I = glyph V2
    0xD3, 0x45,  # 216: draw ones
    0x75, 0x01,  # 218: V5 += 1
    0x12, 0x00,  # 21A: loop
])

if __name__ == "__main__":
    logger = ConsoleLogger("example")
    metrics = MetricsCallback()
    machine = Machine(seed=0, logger=logger, callbacks=[ConsoleCallback(log_interval=30, logger=logger), metrics])
    machine.load_program(COUNTER_ROM)

    start = time.time()
    run_frames(machine, 120)
    elapsed = time.time() - start

    print(framebuffer_to_text(machine.framebuffer))
    print(f"Ran {machine.frame_count} frames in {elapsed:.2f}s")
    print(metrics.get_statistics())
