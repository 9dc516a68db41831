# vpn_bot/translations.py - User-facing texts
import html

LANG_NAMES = {"en": "English 🇬🇧", "id": "Bahasa Indonesia 🇮🇩"}

# All texts are sent with parse_mode="HTML"
MESSAGES = {
    "welcome": {
        "en": "👋 Welcome to <b>ZiVPN Bot</b>!\n\nChoose an option below:",
        "id": "👋 Selamat datang di <b>ZiVPN Bot</b>!\n\nPilih opsi di bawah:",
    },
    "btn_trial": {
        "en": "🎁 Trial ({days} day free, once)",
        "id": "🎁 Trial ({days} Hari Gratis, 1x)",
    },
    "btn_paid": {"en": "💳 Buy account", "id": "💳 Buat Akun Berbayar"},
    "btn_info": {"en": "ℹ️ System info", "id": "ℹ️ Info Sistem"},
    "btn_admin_backup": {"en": "💾 Backup now", "id": "💾 Backup sekarang"},
    "btn_admin_restore": {"en": "♻️ Restore backup", "id": "♻️ Restore backup"},
    "unknown_command": {
        "en": "Unknown command. Use /start.",
        "id": "Perintah tidak dikenal. Gunakan /start.",
    },
    "unknown_option": {"en": "Unknown option.", "id": "Opsi tidak dikenal."},
    "use_start": {
        "en": "Use /start to open the menu.",
        "id": "Gunakan /start untuk membuka menu.",
    },
    "admin_only": {
        "en": "⛔ This command is for the administrator only.",
        "id": "⛔ Perintah hanya untuk admin.",
    },
    "admin_no_trial": {
        "en": "The administrator does not need a trial.",
        "id": "Admin tidak perlu trial.",
    },
    "admin_use_menu": {
        "en": "Use the admin menu to create users.",
        "id": "Gunakan menu admin untuk create user.",
    },
    "trial_already_used": {
        "en": "❌ You have already used your free trial.",
        "id": "❌ Anda sudah menggunakan trial sekali.",
    },
    "trial_enter_password": {
        "en": "Enter the password for your trial account:",
        "id": "Masukkan password untuk akun trial Anda:",
    },
    "paid_enter_password": {
        "en": "Enter the password you want (anything you like):\n\nNote: the minimum purchase is {min_days} days.",
        "id": "Masukkan password yang diinginkan (bebas):\n\nNote: Minimal pembelian {min_days} hari.",
    },
    "empty_password": {
        "en": "❌ The password must not be empty. Try again:",
        "id": "❌ Password tidak boleh kosong. Coba lagi:",
    },
    "enter_days": {
        "en": "Enter the number of days (minimum {min_days}):",
        "id": "Masukkan jumlah hari (minimal {min_days}):",
    },
    "invalid_days": {
        "en": "❌ Invalid number of days or less than the minimum of {min_days}. Try again.",
        "id": "❌ Hari tidak valid atau kurang dari minimal {min_days}. Coba lagi.",
    },
    "payment_caption": {
        "en": "Scan this QRIS to pay <b>Rp {amount}</b> (for {days} days).\nOrder ID: <code>{order_id}</code>\n\nPay within {minutes} minutes or the order is cancelled.",
        "id": "Scan QRIS ini untuk bayar <b>Rp {amount}</b> (untuk {days} hari).\nOrder ID: <code>{order_id}</code>\n\nBayar dalam {minutes} menit, atau batal.",
    },
    "payment_code_text": {
        "en": "Pay <b>Rp {amount}</b> (for {days} days) with this QRIS code:\n<code>{code}</code>\nOrder ID: <code>{order_id}</code>\n\nPay within {minutes} minutes or the order is cancelled.",
        "id": "Bayar <b>Rp {amount}</b> (untuk {days} hari) dengan kode QRIS ini:\n<code>{code}</code>\nOrder ID: <code>{order_id}</code>\n\nBayar dalam {minutes} menit, atau batal.",
    },
    "payment_init_failed": {
        "en": "❌ Could not create the payment. Please try again.",
        "id": "❌ Gagal membuat transaksi pembayaran. Silakan coba lagi.",
    },
    "payment_pending": {
        "en": "⏳ Your payment for order <code>{order_id}</code> is still pending. Please complete it or wait for it to expire.",
        "id": "⏳ Pembayaran untuk order <code>{order_id}</code> masih menunggu. Selesaikan pembayaran atau tunggu hingga kedaluwarsa.",
    },
    "payment_timeout": {
        "en": "❌ Payment timed out or failed. Please try again.",
        "id": "❌ Pembayaran timeout atau gagal. Coba lagi.",
    },
    "payment_failed": {
        "en": "❌ Payment for order <code>{order_id}</code> failed or expired ({status}).",
        "id": "❌ Pembayaran untuk order <code>{order_id}</code> gagal atau kedaluwarsa ({status}).",
    },
    "order_cancelled": {
        "en": "❌ Order <code>{order_id}</code> was cancelled by the administrator.",
        "id": "❌ Order <code>{order_id}</code> dibatalkan oleh admin.",
    },
    "account_header_trial": {
        "en": "✅ <b>TRIAL CREATED</b>",
        "id": "✅ <b>TRIAL BERHASIL DIBUAT</b>",
    },
    "account_header_paid": {
        "en": "✅ <b>PAYMENT RECEIVED &amp; ACCOUNT CREATED</b>",
        "id": "✅ <b>PEMBAYARAN BERHASIL &amp; AKUN DIBUAT</b>",
    },
    "account_body": {
        "en": "🔑 <b>Password</b>: <code>{password}</code>\n🗓️ <b>Expires</b>: <code>{expired}</code>\n📍 <b>Location</b>: <code>{city}</code>\n📡 <b>ISP</b>: <code>{isp}</code>",
        "id": "🔑 <b>Password</b>: <code>{password}</code>\n🗓️ <b>Expired</b>: <code>{expired}</code>\n📍 <b>Lokasi</b>: <code>{city}</code>\n📡 <b>ISP</b>: <code>{isp}</code>",
    },
    "trial_note": {
        "en": "Note: the trial is available once per Telegram account.",
        "id": "Note: Trial hanya 1 kali per akun Telegram.",
    },
    "provisioning_failed": {
        "en": "❌ Failed: {error}",
        "id": "❌ Gagal: {error}",
    },
    "provisioning_failed_after_payment": {
        "en": "❌ Account creation failed after payment: {error}\nPlease contact the administrator with order <code>{order_id}</code>.",
        "id": "❌ Gagal create akun setelah bayar: {error}\nHubungi admin dengan order <code>{order_id}</code>.",
    },
    "provisioning_unreachable": {
        "en": "❌ The VPN server is not reachable right now. Please try again later.",
        "id": "❌ Server VPN tidak dapat dihubungi. Silakan coba lagi nanti.",
    },
    "cancelled": {"en": "✅ Cancelled.", "id": "✅ Dibatalkan."},
    "nothing_to_cancel": {"en": "Nothing to cancel.", "id": "Tidak ada yang dibatalkan."},
    "restore_prompt": {
        "en": "Send the backup file (.json) to restore, or /cancel.",
        "id": "Kirimkan file backup (.json) untuk restore, atau /cancel.",
    },
    "restore_send_file": {
        "en": "❌ Please send the backup file (.json).",
        "id": "❌ Mohon kirimkan file backup (.json).",
    },
    "restore_rejected": {
        "en": "📎 Files are not accepted here. Use /start to open the menu.",
        "id": "📎 File tidak diterima di sini. Gunakan /start untuk membuka menu.",
    },
    "restore_invalid": {
        "en": "❌ Invalid backup file: {error}\nSend another file or /cancel.",
        "id": "❌ File backup tidak valid: {error}\nKirim file lain atau /cancel.",
    },
    "restore_download_failed": {
        "en": "❌ Could not download the file. Please send it again.",
        "id": "❌ Gagal mengunduh file. Silakan kirim ulang.",
    },
    "restore_done": {
        "en": "♻️ Restore finished: {restored} restored, {skipped} skipped, {failed} failed.",
        "id": "♻️ Restore selesai: {restored} dipulihkan, {skipped} dilewati, {failed} gagal.",
    },
    "backup_caption": {
        "en": "💾 Automatic backup: {count} accounts ({created_at})",
        "id": "💾 Backup otomatis: {count} akun ({created_at})",
    },
    "backup_failed": {
        "en": "❌ Backup failed: {error}",
        "id": "❌ Backup gagal: {error}",
    },
    "sweep_report": {
        "en": "🧹 Deleted {count} expired accounts:\n{accounts}",
        "id": "🧹 {count} akun expired dihapus:\n{accounts}",
    },
    "orders_list": {
        "en": "⏳ Pending orders:\n{orders}",
        "id": "⏳ Order menunggu:\n{orders}",
    },
    "no_orders": {"en": "No pending orders.", "id": "Tidak ada order yang menunggu."},
    "cancelorder_usage": {
        "en": "Usage: /cancelorder &lt;order_id&gt;",
        "id": "Penggunaan: /cancelorder &lt;order_id&gt;",
    },
    "order_not_found": {
        "en": "Order <code>{order_id}</code> is not pending.",
        "id": "Order <code>{order_id}</code> tidak sedang menunggu.",
    },
    "order_settling": {
        "en": "Order <code>{order_id}</code> is already paid and being provisioned; it cannot be cancelled.",
        "id": "Order <code>{order_id}</code> sudah dibayar dan sedang diproses; tidak bisa dibatalkan.",
    },
    "order_cancelled_admin": {
        "en": "✅ Order <code>{order_id}</code> cancelled.",
        "id": "✅ Order <code>{order_id}</code> dibatalkan.",
    },
    "system_info": {
        "en": "ℹ️ <b>System info</b>\n⏱️ Uptime: <code>{uptime}</code>\n📍 Location: <code>{city}</code>\n📡 ISP: <code>{isp}</code>\n💰 Price: Rp {price}/day (minimum {min_days} days)",
        "id": "ℹ️ <b>Info Sistem</b>\n⏱️ Uptime: <code>{uptime}</code>\n📍 Lokasi: <code>{city}</code>\n📡 ISP: <code>{isp}</code>\n💰 Harga: Rp {price}/hari (minimal {min_days} hari)",
    },
    "system_info_admin": {
        "en": "👥 Active sessions: {sessions}\n⏳ Pending orders: {orders}\n🎁 Trials used: {trials}",
        "id": "👥 Sesi aktif: {sessions}\n⏳ Order menunggu: {orders}\n🎁 Trial terpakai: {trials}",
    },
    "internal_error": {
        "en": "⚠️ Something went wrong. Please try again or use /start.",
        "id": "⚠️ Terjadi kesalahan. Silakan coba lagi atau gunakan /start.",
    },
}


# Function to get message in the required language
def get_message(key, lang="en", **kwargs):
    """Returns a localized message.

    String arguments are HTML-escaped because every text is sent as HTML.
    """
    if lang not in MESSAGES.get(key, {}):
        lang = "en"
    message = MESSAGES.get(key, {}).get(lang, "")
    if kwargs:
        escaped = {k: html.escape(v) if isinstance(v, str) else v for k, v in kwargs.items()}
        message = message.format(**escaped)
    return message
