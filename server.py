# server.py: authoritative LAN arena server (WebSocket gateway, command dispatch
# and the fixed-rate state broadcast).
import asyncio, logging, random, time, argparse, signal
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from common.net import decode_message, encode_message
from common.protocol import Command, Reload, SetName, Shoot, StateUpdate, SwitchWeapon, ThrowFlash, parse_command
from engine.config import Config
from game.combat import CombatSystem
from game.event_bus import BROADCAST, BROADCAST_EXCEPT, SEND_TO, EventBus
from game.grenades import FlashSystem, load_flash
from game.map_data import MapData, load_from_file, mapdata_to_dict
from game.scheduler import Scheduler
from game.server_state import GameState, Player, random_spawn, sanitize_name
from game.transform import clamp, wrap_pi
from game.weapons import Weapon, load_weapons

log = logging.getLogger("server")

# ---------- Utility ----------
def now() -> float:
    return time.time()

# ---------- Sessions ----------
class Session:
    """One client connection. Sends are queued and drained by a writer task,
    so the simulation never awaits the network."""

    def __init__(self, ws: Any, max_queue: int = 256):
        self.ws = ws
        self.queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=max_queue)
        self.open = True

    def send(self, payload: str) -> None:
        if not self.open:
            return
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            # stalled client; the next state snapshot supersedes what was dropped
            log.debug("[ws] send queue full, dropping frame")

    def close(self) -> None:
        self.open = False

    async def run_writer(self) -> None:
        while self.open:
            payload = await self.queue.get()
            try:
                await self.ws.send(payload)
            except ConnectionClosed:
                self.open = False

# ---------- Server ----------
class ArenaServer:
    def __init__(self, cfg: Config, weapons: Dict[str, Weapon], mapdata: MapData,
                 now_fn: Callable[[], float] = now, rng: Optional[random.Random] = None):
        self.cfg = cfg
        self.weapons = weapons
        self.mapdata = mapdata
        self._now = now_fn
        self.rng = rng or random.Random()

        gameplay = cfg.section("gameplay")
        server_cfg = cfg.section("server")
        default_weapon = str(gameplay.get("default_weapon", "rifle"))
        if default_weapon not in weapons:
            default_weapon = next(iter(weapons))

        self.gs = GameState(max_health=int(gameplay.get("max_health", 100)), default_weapon=default_weapon)
        self.sessions: Dict[str, Any] = {}
        self.bus = EventBus()
        self.scheduler = Scheduler(now_fn=now_fn)

        self.min_y = float(gameplay.get("min_y", 0.0))
        self.max_y = float(gameplay.get("max_y", 5.0))
        self.pitch_limit = float(gameplay.get("pitch_limit", 1.3))
        self.tick_hz = float(server_cfg.get("tick_hz", 20))

        self.combat = CombatSystem(self.gs, mapdata, weapons, gameplay, server_cfg,
                                   self.scheduler, self.bus, now_fn=now_fn, rng=self.rng)
        self.flash = FlashSystem(self.gs, mapdata.bounds, load_flash(cfg.section("flash")), gameplay,
                                 self.scheduler, self.bus, now_fn=now_fn)

        self.bus.subscribe(BROADCAST, self.broadcast)
        self.bus.subscribe(BROADCAST_EXCEPT, self.broadcast_except)
        self.bus.subscribe(SEND_TO, self.send_to)

        self._handlers: Dict[type, Callable[[Player, Any], None]] = {
            StateUpdate: self._on_state,
            SetName: self._on_set_name,
            Shoot: self._on_shoot,
            SwitchWeapon: self._on_switch_weapon,
            ThrowFlash: self._on_throw_flash,
            Reload: self._on_reload,
        }

    @classmethod
    def from_config(cls, cfg: Config, **kwargs) -> "ArenaServer":
        weapons = load_weapons(str(cfg.resolve_path("weapons")))
        mapdata = load_from_file(str(cfg.resolve_path("map")))
        return cls(cfg, weapons, mapdata, **kwargs)

    # ---------- Outbound ----------
    def broadcast(self, message: Dict[str, Any]) -> None:
        payload = encode_message(message)
        for session in list(self.sessions.values()):
            if session.open:
                session.send(payload)

    def broadcast_except(self, pid: str, message: Dict[str, Any]) -> None:
        payload = encode_message(message)
        for other, session in list(self.sessions.items()):
            if other != pid and session.open:
                session.send(payload)

    def send_to(self, pid: str, message: Dict[str, Any]) -> None:
        session = self.sessions.get(pid)
        if session is not None and session.open:
            session.send(encode_message(message))

    # ---------- Connection lifecycle ----------
    def connect(self, session: Any) -> Player:
        p = self.gs.add_player(random_spawn(self.mapdata.spawns, self.rng), self.weapons)
        self.sessions[p.id] = session
        log.info("[join] pid=%s name=%s players=%d", p.id, p.name, len(self.gs))
        self.bus.send_to(p.id, {
            "type": "welcome",
            "id": p.id,
            "map": mapdata_to_dict(self.mapdata),
            "weapons": {wid: w.to_dict() for wid, w in self.weapons.items()},
            "players": self.gs.snapshot(),
        })
        self.bus.broadcast_except(p.id, {"type": "player_join", "player": p.to_dict()})
        return p

    def disconnect(self, pid: str) -> None:
        self.sessions.pop(pid, None)
        p = self.gs.remove_player(pid)
        if p is None:
            return
        log.info("[leave] pid=%s name=%s", pid, p.name)
        self.bus.broadcast({"type": "player_leave", "id": pid})

    def handle_message(self, pid: str, data: Any) -> None:
        """Decode, validate and apply one inbound frame. Anything malformed is dropped."""
        cmd = parse_command(decode_message(data))
        if cmd is None:
            return
        self.dispatch(pid, cmd)

    def dispatch(self, pid: str, cmd: Command) -> None:
        p = self.gs.get(pid)
        if p is None:
            return
        self._handlers[type(cmd)](p, cmd)

    # ---------- Command handlers ----------
    def _on_state(self, p: Player, cmd: StateUpdate) -> None:
        if p.dead:
            return
        if cmd.position is not None:
            x, y, z = cmd.position
            x, z = self.mapdata.bounds.clamp_xz(x, z)
            p.position = (x, clamp(y, self.min_y, self.max_y), z)
        if cmd.yaw is not None:
            p.yaw = wrap_pi(cmd.yaw)
        if cmd.pitch is not None:
            p.pitch = clamp(cmd.pitch, -self.pitch_limit, self.pitch_limit)
        if cmd.weapon is not None and cmd.weapon in self.weapons:
            p.weapon = cmd.weapon
        if cmd.stance is not None:
            p.stance = cmd.stance

    def _on_set_name(self, p: Player, cmd: SetName) -> None:
        p.name = sanitize_name(cmd.name, p.id)
        log.info("[name] pid=%s name=%s", p.id, p.name)

    def _on_shoot(self, p: Player, cmd: Shoot) -> None:
        self.combat.fire(p.id)

    def _on_switch_weapon(self, p: Player, cmd: SwitchWeapon) -> None:
        if cmd.weapon in self.weapons:
            p.weapon = cmd.weapon

    def _on_throw_flash(self, p: Player, cmd: ThrowFlash) -> None:
        self.flash.throw(p.id, 1.0 if cmd.charge is None else cmd.charge)

    def _on_reload(self, p: Player, cmd: Reload) -> None:
        self.combat.reload(p.id)

    # ---------- Tick ----------
    def build_snapshot(self) -> Dict[str, Any]:
        return {"type": "state", "players": self.gs.snapshot()}

    def tick(self) -> None:
        self.scheduler.run_due(self._now())
        self.broadcast(self.build_snapshot())

    async def run(self):
        tick_dt = 1.0 / max(1e-6, self.tick_hz)
        while True:
            t0 = time.monotonic()
            self.tick()
            # Tick pacing
            await asyncio.sleep(max(0.0, tick_dt - (time.monotonic() - t0)))

    # ---------- Networking ----------
    async def handle_client(self, ws):
        session = Session(ws)
        p = self.connect(session)
        writer = asyncio.create_task(session.run_writer(), name=f"writer-{p.id}")
        try:
            async for frame in ws:
                self.handle_message(p.id, frame)
        except ConnectionClosed as e:
            log.debug("[ws] pid=%s closed: %s", p.id, e)
        finally:
            session.close()
            writer.cancel()
            self.disconnect(p.id)

# ---------- Entrypoint ----------
async def main_async(args):
    cfg = Config.load(args.config)
    server = ArenaServer.from_config(cfg)
    host = args.host or cfg.get("server.host", "0.0.0.0")
    port = int(args.port or cfg.get("server.port", 3000))
    max_size = int(cfg.get("server.max_message_bytes", 65536))

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)):
        if sig is not None:
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                pass  # e.g., Windows

    async with websockets.serve(server.handle_client, host, port, max_size=max_size):
        log.info("[ws] %s listening on ws://%s:%d (%d weapons, %d obstacles)",
                 cfg.get("server.name"), host, port, len(server.weapons), len(server.mapdata.obstacles))
        run_task = asyncio.create_task(server.run(), name="game_loop")

        def _report_done(t: asyncio.Task):
            if t.cancelled():
                return
            exc = t.exception()
            if exc:
                log.error("[task:%s] crashed: %r", t.get_name(), exc)
                stop.set()
        run_task.add_done_callback(_report_done)

        try:
            await stop.wait()          # run until a signal or the loop fails
        finally:
            run_task.cancel()
            await asyncio.gather(run_task, return_exceptions=True)


def main():
    ap = argparse.ArgumentParser(description="LAN arena FPS server")
    ap.add_argument("--config", default=None, help="path to defaults.json (default: bundled configs/defaults.json)")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="[%(asctime)s] %(message)s")
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    main()
