# main.py
import asyncio
import sys
import questionary
from rich.table import Table
from rich.layout import Layout
from rich.console import Console
from rich.panel import Panel

from arbledger.config import load_config
from arbledger.engine import ArbitrageEngine
from arbledger.errors import LedgerError
from arbledger.logger import setup_console_logger, AsyncAuditLogger
from arbledger.market_engine import PriceFeed
from arbledger.pricing import parse_amount, to_minor_units
from arbledger.settlement import QueuedSettlement, WebhookSink
from arbledger.storage import load_snapshot, save_snapshot

ACTIONS = [
    "Dashboard",
    "Create intent",
    "Pause intent",
    "Resume intent",
    "Execute intent (manual prices)",
    "Execute intent (live quotes)",
    "Scan opportunities",
    "Store cross-chain signature",
    "Verify cross-chain signature",
    "Switch account",
    "Quit",
]

# --- UI HELPER FUNCTIONS ---

def format_units(minor: int, scale: int) -> str:
    whole, frac = divmod(minor, scale)
    return f"{whole}.{str(frac).rjust(len(str(scale)) - 1, '0')[:6]}"

def generate_dashboard(engine: ArbitrageEngine, account: str):
    """
    Creates the Rich Console Dashboard layout.
    Shows the account's intents, execution history and total profit.
    """

    # 1. Intents Table
    intent_table = Table(title="🎯 Intents")
    intent_table.add_column("ID", style="cyan")
    intent_table.add_column("Pair")
    intent_table.add_column("Min %", justify="right")
    intent_table.add_column("Status", style="magenta")
    for intent in engine.get_user_intents(account):
        intent_table.add_row(intent.id, intent.token_pair, str(intent.min_profit_threshold), intent.status.value)

    # 2. Executions Table
    exec_table = Table(title="⚡ Execution History")
    exec_table.add_column("ID", style="cyan")
    exec_table.add_column("Intent")
    exec_table.add_column("Pair")
    exec_table.add_column("Diff", justify="right")
    exec_table.add_column("Profit", justify="right", style="green")
    exec_table.add_column("Tx", style="dim")
    for ex in engine.get_execution_history(account):
        exec_table.add_row(ex.id, ex.intent_id, ex.token_pair, f"{ex.price_diff:.4f}", f"{ex.profit:.4f}", ex.tx_hash[:12])

    layout = Layout()
    layout.split_column(
        Layout(name="top"),
        Layout(name="bottom")
    )
    layout["top"].split_row(
        Layout(Panel(intent_table)),
        Layout(Panel(exec_table))
    )

    info = engine.get_contract_info()
    total = format_units(engine.get_total_profit(account), engine.minor_unit_scale)
    footer = Panel(
        f"[bold gold1]{account} TOTAL PROFIT: {total}[/bold gold1] | "
        f"{info['name']} v{info['version']} | intents: {info['total_intents']} | executions: {info['total_executions']}",
        style="white on blue"
    )
    layout["bottom"].update(footer)
    layout["bottom"].size = 3

    return layout

def opportunities_table(opps) -> Table:
    table = Table(title="📡 Arbitrage Opportunities")
    table.add_column("Pair", style="cyan")
    table.add_column("Market A", justify="right")
    table.add_column("Market B", justify="right")
    table.add_column("Profit %", justify="right", style="green")
    for o in opps:
        table.add_row(o.token_pair, f"{o.market_a}: {o.price_a:,.4f}", f"{o.market_b}: {o.price_b:,.4f}", f"{o.profit_percentage:.3f}%")
    return table

# --- MAIN CONTROLLER ---

class LedgerConsole:
    def __init__(self, config: dict, account: str):
        self.config = config
        self.account = account
        self.logger = setup_console_logger("ArbLedger", config['system']['log_level'])
        self.audit_log = AsyncAuditLogger(config['audit']['execution_log'])

        self.settlement = QueuedSettlement(self.logger, sinks=[self.audit_log])
        self.webhook = None
        if config['settlement']['mode'] == 'webhook':
            self.webhook = WebhookSink(config['settlement']['webhook_url'], config['settlement']['timeout_seconds'])
            self.settlement.add_sink(self.webhook)

        self.engine = ArbitrageEngine.from_config(config, self.logger, settlement=self.settlement)
        self.feed = PriceFeed(config, self.logger)
        self.snapshot_path = config['storage']['snapshot_path']
        self.console = Console()

    def _persist(self):
        save_snapshot(self.engine, self.snapshot_path)

    async def _pick_intent(self, status=None):
        intents = [i for i in self.engine.get_user_intents(self.account) if status is None or i.status.value == status]
        if not intents:
            self.console.print("[yellow]No matching intents.[/yellow]")
            return None
        choices = [questionary.Choice(f"{i.id} | {i.token_pair} | >= {i.min_profit_threshold}% | {i.status.value}", value=i.id) for i in intents]
        return await self._ask(questionary.select("Intent:", choices=choices))

    async def _ask(self, question):
        return await question.ask_async()

    async def handle(self, action: str):
        scale = self.engine.minor_unit_scale

        if action == "Dashboard":
            self.console.print(generate_dashboard(self.engine, self.account))

        elif action == "Create intent":
            pair = await self._ask(questionary.text("Token pair:", default="ETH/USDT"))
            threshold = await self._ask(questionary.text("Min profit threshold (%):", default="1.0"))
            deposit = await self._ask(questionary.text("Deposit (whole units):", default="1"))
            attached = to_minor_units(parse_amount(deposit, "deposit"), scale)
            intent_id = self.engine.create_intent(self.account, pair, threshold, attached)
            self._persist()
            self.console.print(f"[green]Created intent {intent_id}[/green]")

        elif action in ("Pause intent", "Resume intent"):
            intent_id = await self._pick_intent("Active" if action == "Pause intent" else "Paused")
            if intent_id:
                if action == "Pause intent":
                    self.engine.pause_intent(intent_id, self.account)
                else:
                    self.engine.resume_intent(intent_id, self.account)
                self._persist()

        elif action == "Execute intent (manual prices)":
            intent_id = await self._pick_intent("Active")
            if intent_id:
                price_a = await self._ask(questionary.text("Price on market A:"))
                price_b = await self._ask(questionary.text("Price on market B:"))
                handle = self.engine.execute_arbitrage(intent_id, self.account, price_a, price_b)
                self._persist()
                self.console.print(f"[green]Execution {handle.execution_id} dispatched via {handle.collaborator} | tx {handle.tx_hash[:16]}[/green]")

        elif action == "Execute intent (live quotes)":
            intent_id = await self._pick_intent("Active")
            if intent_id:
                intent = self.engine.get_intent(intent_id)
                legs = await self.feed.fetch_pair(intent.token_pair)
                if legs is None:
                    self.console.print(f"[red]No quotes for {intent.token_pair}.[/red]")
                    return
                quote_a, quote_b = legs
                self.console.print(f"{quote_a.market}: {quote_a.price} | {quote_b.market}: {quote_b.price}")
                handle = self.engine.execute_arbitrage(intent_id, self.account, repr(quote_a.price), repr(quote_b.price))
                self._persist()
                self.console.print(f"[green]Execution {handle.execution_id} dispatched via {handle.collaborator}[/green]")

        elif action == "Scan opportunities":
            opps = await self.feed.scan_opportunities()
            self.console.print(opportunities_table(opps))

        elif action == "Store cross-chain signature":
            execution_id = await self._ask(questionary.text("Execution ID:"))
            signature = await self._ask(questionary.text("Signature (hex):"))
            public_key = await self._ask(questionary.text("Public key (hex):"))
            chain_id = await self._ask(questionary.text("Chain ID:", default="1"))
            nonce = await self._ask(questionary.text("Nonce:", default="0"))
            self.engine.store_cross_chain_signature(execution_id, bytes.fromhex(signature), bytes.fromhex(public_key), int(chain_id), int(nonce))
            self._persist()

        elif action == "Verify cross-chain signature":
            execution_id = await self._ask(questionary.text("Execution ID:"))
            ok = self.engine.verify_cross_chain_signature(execution_id)
            self.console.print("[green]Signature present[/green]" if ok else "[red]No signature stored[/red]")

        elif action == "Switch account":
            self.account = await self._ask(questionary.text("Account ID:", default=self.account))

    async def run(self):
        try:
            await self.audit_log.start()
            await self.settlement.start()
            load_snapshot(self.engine, self.snapshot_path)

            if not await self.feed.initialize():
                self.console.print("⚠️ Market diagnostics failed. Live quotes may be unavailable.")

            while True:
                action = await self._ask(questionary.select(f"[{self.account}] Action:", choices=ACTIONS))
                if action in (None, "Quit"):
                    break
                try:
                    await self.handle(action)
                except LedgerError as e:
                    self.console.print(f"[red]❌ {type(e).__name__}: {e.msg}[/red]")
                except ValueError as e:
                    self.console.print(f"[red]❌ Bad input: {e}[/red]")
        finally:
            print("Shutting down resources...")
            await self.settlement.stop()
            await self.audit_log.stop()
            if self.webhook:
                await self.webhook.close()
            await self.feed.shutdown()

if __name__ == "__main__":
    conf = load_config("config.yaml")
    try:
        print("\n🚀 ARBITRAGE INTENT LEDGER \n")
        account = questionary.text("Account ID:", default="alice.testnet").ask()
        if not account:
            print("No account given. Exiting.")
            sys.exit()
        app = LedgerConsole(conf, account)
        try:
            import uvloop
            asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
        except ImportError:
            pass
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\n🛑 Console Stopped by User.")
        sys.exit()
