"""
Streamlit Frontend for Balance

Single page:
1. Balance cards (aggregate and per account)
2. 14-day expense trend
3. New transaction form and the collapsible transfer form
4. Transaction history with search, category filter, inline edit and delete

The page renders from one LedgerSnapshot kept in session state. Every
mutation replaces it with the snapshot returned by the flow; nothing is
patched locally.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import plotly.graph_objects as go
import streamlit as st
import structlog

from balance_tracker.audit import configure_logging, create_correlation_id
from balance_tracker.config import get_settings, validate_all_settings
from balance_tracker.formatting import compact_amount, format_currency, format_timestamp
from balance_tracker.models.ledger import (
    AccountType,
    ExpenseCategory,
    IncomeCategory,
    LedgerSnapshot,
    NewTransaction,
    TransactionType,
    TransactionWithBalance,
    TransferRequest,
)
from balance_tracker.orchestrator import LedgerFlow, create_app_components
from balance_tracker.queries import (
    ALL,
    category_filter_options,
    count_by_type,
    filter_transactions,
    summarize_expenses,
)
from balance_tracker.services.storage import InMemoryLedgerStorage, StorageError


logger = structlog.get_logger(__name__)

# Page configuration
st.set_page_config(
    page_title="Balance",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .income { color: #059669; font-weight: 600; }
    .expense { color: #e11d48; font-weight: 600; }
    .muted { color: #6b7280; font-size: 0.85em; }
</style>
""", unsafe_allow_html=True)


CATEGORY_ICONS = {
    ExpenseCategory.FOODS.value: "🍽️",
    ExpenseCategory.TRANSPORTATION.value: "🚗",
    ExpenseCategory.EQUIPMENT.value: "🔧",
    ExpenseCategory.ENTERTAINMENT.value: "🎮",
    IncomeCategory.SALARY.value: "💵",
}

ACCOUNT_ICONS = {
    AccountType.REKENING: "👛",
    AccountType.DANA: "💳",
    AccountType.POCKET: "🐷",
}

FILTER_LABELS = {
    ALL: "Semua",
    TransactionType.INCOME.value: "Pemasukan",
    TransactionType.EXPENSE.value: "Pengeluaran",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    return create_app_components()


def current_snapshot(flow: LedgerFlow) -> LedgerSnapshot:
    if "snapshot" not in st.session_state:
        st.session_state.snapshot = run_async(flow.refresh())
    return st.session_state.snapshot


def apply_outcome(outcome) -> None:
    """Store the returned snapshot and queue the message for the next run."""
    snapshot, ok, message = outcome
    st.session_state.snapshot = snapshot
    st.session_state.flash = ("success" if ok else "error", message)


def report_failure(flow: LedgerFlow, message: str, error: Exception) -> None:
    """Blocking generic notice for a failed write; the store is re-read."""
    logger.error("mutation_failed", notice=message, error=str(error))
    st.session_state.snapshot = run_async(flow.refresh(st.session_state.snapshot))
    if get_settings().app.debug_mode:
        message = f"{message}\n\n{error}"
    st.session_state.flash = ("error", message)


def main():
    """Main application entry point."""
    flow, storage = get_components()
    settings = get_settings().app
    snapshot = current_snapshot(flow)

    render_header(storage)

    flash = st.session_state.pop("flash", None)
    if flash:
        kind, message = flash
        (st.success if kind == "success" else st.error)(message)

    render_balance_cards(snapshot)
    render_expense_chart(snapshot, settings)

    left, right = st.columns([2, 3], gap="large")
    with left:
        render_transaction_form(flow, snapshot)
        render_transfer_section(flow, snapshot)
    with right:
        render_transaction_list(flow, snapshot, settings)

    st.markdown("---")
    render_settings_footer()


def render_header(storage):
    col1, col2 = st.columns([4, 1])
    with col1:
        st.title("💰 Balance")
        st.caption("Track your money smartly")
    with col2:
        if st.button("🔄 Muat ulang"):
            st.session_state.snapshot = run_async(
                get_components()[0].refresh(st.session_state.get("snapshot"))
            )
            st.rerun()

    if isinstance(storage, InMemoryLedgerStorage):
        st.warning(
            "Data disimpan di memori saja dan hilang saat aplikasi dimulai ulang. "
            "Atur SUPABASE_URL dan SUPABASE_ANON_KEY untuk menyimpan permanen."
        )


def render_balance_cards(snapshot: LedgerSnapshot):
    balance = snapshot.balance

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Saldo", format_currency(balance.balance))
    col2.metric("Pemasukan", format_currency(balance.total_income))
    col3.metric("Pengeluaran", format_currency(balance.total_expense))

    cols = st.columns(len(AccountType))
    for col, (account, amount) in zip(cols, snapshot.balances_by_account().items()):
        col.metric(f"{ACCOUNT_ICONS[account]} {account.label}", format_currency(amount))


def render_expense_chart(snapshot: LedgerSnapshot, settings):
    today = datetime.now(settings.tzinfo).date()
    trend = summarize_expenses(
        snapshot.transactions,
        today=today,
        tz=settings.tzinfo,
        days=settings.chart_window_days,
    )

    st.subheader(f"📈 Tren Pengeluaran {settings.chart_window_days} Hari")

    values = [float(b.expense) for b in trend.buckets]
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=[b.label for b in trend.buckets],
        y=values,
        customdata=[[b.full_label, format_currency(b.expense)] for b in trend.buckets],
        hovertemplate="%{customdata[0]}<br>%{customdata[1]}<extra></extra>",
        mode="lines+markers",
        name="Pengeluaran",
        line=dict(color="#fb7185", width=2, shape="spline"),
        fill="tozeroy",
        fillcolor="rgba(244, 63, 94, 0.15)",
    ))
    peak = max(values) if any(values) else 1.0
    ticks = [peak * i / 4 for i in range(5)]
    fig.update_layout(
        template="plotly_dark",
        height=280,
        margin=dict(t=10, b=10, l=10, r=10),
        yaxis=dict(tickvals=ticks, ticktext=[compact_amount(t) for t in ticks]),
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True)

    col1, col2 = st.columns(2)
    col1.metric("Hari ini", format_currency(trend.today_total))
    col2.metric(f"{settings.chart_window_days} hari", format_currency(trend.window_total))


def render_transaction_form(flow: LedgerFlow, snapshot: LedgerSnapshot):
    st.subheader("➕ Transaksi Baru")

    tx_type = st.radio(
        "Jenis",
        options=[TransactionType.EXPENSE, TransactionType.INCOME],
        format_func=lambda t: "➖ Pengeluaran" if t == TransactionType.EXPENSE else "➕ Pemasukan",
        horizontal=True,
        key="tx_type",
    )

    with st.form("transaction_form", clear_on_submit=True):
        if tx_type == TransactionType.EXPENSE:
            category = st.selectbox(
                "Kategori",
                options=list(ExpenseCategory),
                format_func=lambda c: f"{CATEGORY_ICONS.get(c.value, '•')} {c.value}",
            )
            payment_account = st.selectbox(
                "Bayar dari",
                options=list(AccountType),
                format_func=lambda a: (
                    f"{ACCOUNT_ICONS[a]} {a.label} · "
                    f"{format_currency(snapshot.account_balance(a))}"
                ),
            )
        else:
            category = st.selectbox(
                "Kategori",
                options=list(IncomeCategory),
                format_func=lambda c: f"{CATEGORY_ICONS.get(c.value, '•')} {c.value}",
            )
            payment_account = AccountType.REKENING
            st.caption("Pemasukan selalu masuk ke Rekening")

        notes = st.text_input("Catatan", placeholder="Contoh: Makan siang, Gaji")

        col1, col2 = st.columns(2)
        with col1:
            price = st.number_input("Harga (Rp)", min_value=0, step=1000, value=0)
        with col2:
            quantity = st.number_input("Jumlah", min_value=1, step=1, value=1)

        submitted = st.form_submit_button("💾 Simpan Transaksi", type="primary")

    if not submitted:
        return
    if price <= 0:
        st.error("Masukkan harga yang valid")
        return

    try:
        intent = NewTransaction(
            type=tx_type,
            expense_category=category if tx_type == TransactionType.EXPENSE else None,
            income_category=category if tx_type == TransactionType.INCOME else None,
            notes=notes,
            price=Decimal(str(price)),
            quantity=int(quantity),
            payment_account=payment_account,
        )
    except ValueError as e:
        st.error(str(e))
        return

    with st.spinner("Menyimpan..."):
        try:
            apply_outcome(run_async(flow.add_transaction(
                intent, snapshot, correlation_id=create_correlation_id(),
            )))
        except StorageError as e:
            report_failure(flow, "Gagal menyimpan transaksi", e)
    st.rerun()


def render_transfer_section(flow: LedgerFlow, snapshot: LedgerSnapshot):
    if "show_transfer" not in st.session_state:
        st.session_state.show_transfer = False

    label = "Tutup Transfer" if st.session_state.show_transfer else "🔁 Transfer Antar Akun"
    if st.button(label, key="toggle_transfer"):
        st.session_state.show_transfer = not st.session_state.show_transfer
        st.rerun()

    if not st.session_state.show_transfer:
        return

    accounts = list(AccountType)

    def account_label(a: AccountType) -> str:
        return f"{ACCOUNT_ICONS[a]} {a.label} · {format_currency(snapshot.account_balance(a))}"

    with st.form("transfer_form", clear_on_submit=True):
        from_account = st.selectbox("Dari akun", options=accounts, format_func=account_label)
        to_account = st.selectbox("Ke akun", options=accounts, index=1, format_func=account_label)
        amount = st.number_input("Jumlah (Rp)", min_value=0, step=1000, value=0)
        notes = st.text_input("Catatan", placeholder="Contoh: Top up Dana, Sisihkan tabungan")
        submitted = st.form_submit_button("📤 Transfer", type="primary")

    if not submitted:
        return

    try:
        request = TransferRequest(
            from_account=from_account,
            to_account=to_account,
            amount=Decimal(str(amount)),
            notes=notes or None,
        )
    except ValueError as e:
        st.error(str(e))
        return

    with st.spinner("Memproses..."):
        try:
            apply_outcome(run_async(flow.transfer(
                request, snapshot, correlation_id=create_correlation_id(),
            )))
        except StorageError as e:
            report_failure(flow, "Gagal melakukan transfer", e)
    st.rerun()


def render_transaction_list(flow: LedgerFlow, snapshot: LedgerSnapshot, settings):
    st.subheader("🕒 Riwayat Transaksi")

    col1, col2 = st.columns([3, 2])
    with col1:
        query = st.text_input("Cari", placeholder="Catatan, kategori, atau jumlah", key="search")
    with col2:
        category = st.selectbox(
            "Filter",
            options=category_filter_options(),
            format_func=lambda c: FILTER_LABELS.get(c, c),
            key="category_filter",
        )

    if not snapshot.transactions:
        st.info("Belum ada transaksi. Tambahkan transaksi pertama Anda.")
        return

    rows = filter_transactions(snapshot.transactions, query=query, category=category)
    counts = count_by_type(rows)
    st.caption(
        f"{len(rows)} dari {len(snapshot.transactions)} transaksi · "
        f"{counts[TransactionType.INCOME.value]} pemasukan, "
        f"{counts[TransactionType.EXPENSE.value]} pengeluaran"
    )

    if not rows:
        st.info("Tidak ada transaksi yang cocok.")
        return

    for tx in rows:
        with st.container(border=True):
            if st.session_state.get("editing_id") == tx.id:
                render_edit_row(flow, snapshot, tx)
            else:
                render_view_row(flow, snapshot, tx, settings)


def render_view_row(flow: LedgerFlow, snapshot: LedgerSnapshot, tx: TransactionWithBalance, settings):
    is_income = tx.type == TransactionType.INCOME
    css = "income" if is_income else "expense"
    sign = "+" if is_income else "-"

    col1, col2, col3, col4 = st.columns([5, 3, 1, 1])
    with col1:
        notes = f" · {tx.notes}" if tx.notes else ""
        qty = f" · ×{tx.quantity}" if tx.quantity > 1 else ""
        st.markdown(
            f"{CATEGORY_ICONS.get(tx.category, '•')} **{tx.category}**{notes}<br>"
            f"<span class='muted'>{format_timestamp(tx.created_at, settings.tzinfo)}{qty}</span>",
            unsafe_allow_html=True,
        )
    with col2:
        st.markdown(
            f"<span class='{css}'>{sign}{format_currency(tx.total)}</span><br>"
            f"<span class='muted'>Saldo {format_currency(tx.running_balance)}</span>",
            unsafe_allow_html=True,
        )
    with col3:
        if st.button("✏️", key=f"edit_{tx.id}", help="Edit"):
            st.session_state.editing_id = tx.id
            st.rerun()
    with col4:
        if st.button("🗑️", key=f"delete_{tx.id}", help="Hapus"):
            st.session_state.confirm_delete = tx.id
            st.rerun()

    if st.session_state.get("confirm_delete") == tx.id:
        st.warning("Hapus transaksi ini?")
        yes, no = st.columns(2)
        if yes.button("Ya, hapus", key=f"confirm_{tx.id}", type="primary"):
            st.session_state.confirm_delete = None
            try:
                apply_outcome(run_async(flow.delete_transaction(
                    tx.id, snapshot, correlation_id=create_correlation_id(),
                )))
            except StorageError as e:
                report_failure(flow, "Gagal menghapus transaksi", e)
            st.rerun()
        if no.button("Batal", key=f"cancel_delete_{tx.id}"):
            st.session_state.confirm_delete = None
            st.rerun()


def render_edit_row(flow: LedgerFlow, snapshot: LedgerSnapshot, tx: TransactionWithBalance):
    st.markdown(f"{CATEGORY_ICONS.get(tx.category, '•')} **{tx.category}**")

    col1, col2, col3, col4 = st.columns([3, 2, 1, 1])
    with col1:
        price = st.number_input(
            "Harga", min_value=0, step=1000, value=int(tx.price), key=f"price_{tx.id}",
        )
    with col2:
        quantity = st.number_input(
            "Qty", min_value=1, step=1, value=tx.quantity, key=f"qty_{tx.id}",
        )
    with col3:
        save = st.button("💾", key=f"save_{tx.id}", help="Simpan")
    with col4:
        cancel = st.button("✖️", key=f"cancel_{tx.id}", help="Batal")

    if cancel:
        st.session_state.editing_id = None
        st.rerun()

    if save:
        if price <= 0:
            st.error("Harga harus lebih dari nol")
            return
        try:
            apply_outcome(run_async(flow.edit_transaction(
                tx.id,
                Decimal(str(price)),
                int(quantity),
                snapshot,
                correlation_id=create_correlation_id(),
            )))
        except StorageError as e:
            report_failure(flow, "Gagal mengubah transaksi", e)
        st.session_state.editing_id = None
        st.rerun()


def render_settings_footer():
    with st.expander("⚙️ Status Koneksi"):
        st.caption(f"Environment: {get_settings().app.app_environment}")
        status = validate_all_settings()
        for name, key in [("Supabase (Penyimpanan)", "supabase"), ("Aplikasi", "app")]:
            if status.get(key, False):
                st.success(f"✅ {name} - OK")
            else:
                error = status.get(f"{key}_error", "Belum dikonfigurasi")
                st.error(f"❌ {name} - {error}")
        st.markdown(
            "Buat file `.env` berisi `SUPABASE_URL` dan `SUPABASE_ANON_KEY`. "
            "Lihat `.env.example`."
        )
    st.caption("© 2025 Balance · Track your money smartly")


if __name__ == "__main__":
    main()
