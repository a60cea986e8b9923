import currency

ZERO_ADDRESS = "0" * 64
SCALE = 1000000000000000000
BPS_DENOMINATOR = 10000
MAX_BPS = 10000

balances = Hash(default_value=0)
approvals = Hash(default_value=0)
metadata = Hash()
total_supply = Variable()

# Holder registry: holders is a dense 0-based sequence, holder_index stores slot + 1
holders = Hash(default_value=None)
holder_index = Hash(default_value=0)
holder_count = Variable()

buy_fee = Variable()
sell_fee = Variable()
transfer_fee = Variable()
rewards_percentage = Variable()
min_holding_for_rewards = Variable()
max_transaction_bps = Variable()
max_wallet_bps = Variable()

liquidity_pools = Hash(default_value=False)
fee_exempt = Hash(default_value=False)
reward_excluded = Hash(default_value=False)
marketing_wallet = Variable()
distributing = Variable()

# Events
TransferEvent = LogEvent(
    event="Transfer",
    params={
        "from": {"type": str, "idx": True},
        "to": {"type": str, "idx": True},
        "amount": {"type": (int, float, decimal)}
    }
)

ApproveEvent = LogEvent(
    event="Approve",
    params={
        "from": {"type": str, "idx": True},
        "to": {"type": str, "idx": True},
        "amount": {"type": (int, float, decimal)}
    }
)

FeesUpdatedEvent = LogEvent(
    event="FeesUpdated",
    params={
        "buy_fee": {"type": int},
        "sell_fee": {"type": int},
        "transfer_fee": {"type": int}
    }
)

RewardsPercentageUpdatedEvent = LogEvent(
    event="RewardsPercentageUpdated",
    params={
        "rewards_percentage": {"type": int}
    }
)

MinHoldingUpdatedEvent = LogEvent(
    event="MinHoldingUpdated",
    params={
        "min_holding_for_rewards": {"type": (int, float, decimal)}
    }
)

LimitsUpdatedEvent = LogEvent(
    event="LimitsUpdated",
    params={
        "max_transaction_bps": {"type": int},
        "max_wallet_bps": {"type": int}
    }
)

LiquidityPoolUpdatedEvent = LogEvent(
    event="LiquidityPoolUpdated",
    params={
        "address": {"type": str, "idx": True},
        "is_pool": {"type": bool}
    }
)

FeeExemptUpdatedEvent = LogEvent(
    event="FeeExemptUpdated",
    params={
        "address": {"type": str, "idx": True},
        "exempt": {"type": bool}
    }
)

RewardExcludedUpdatedEvent = LogEvent(
    event="RewardExcludedUpdated",
    params={
        "address": {"type": str, "idx": True},
        "excluded": {"type": bool}
    }
)

MarketingWalletUpdatedEvent = LogEvent(
    event="MarketingWalletUpdated",
    params={
        "previous": {"type": str, "idx": True},
        "current": {"type": str, "idx": True}
    }
)

RewardsDistributedEvent = LogEvent(
    event="RewardsDistributed",
    params={
        "total_distributed": {"type": (int, float, decimal)},
        "recipients": {"type": int},
        "pooled_value": {"type": (int, float, decimal)}
    }
)

NativeWithdrawnEvent = LogEvent(
    event="NativeWithdrawn",
    params={
        "to": {"type": str, "idx": True},
        "amount": {"type": (int, float, decimal)}
    }
)

OwnershipTransferredEvent = LogEvent(
    event="OwnershipTransferred",
    params={
        "previous_owner": {"type": str, "idx": True},
        "new_owner": {"type": str, "idx": True}
    }
)


@construct
def seed(marketing: str, initial_supply: int = 100000000):
    assert marketing != ZERO_ADDRESS, 'Invalid address!'
    assert initial_supply > 0, 'Initial supply must be positive!'

    total_supply.set(initial_supply)
    balances[ctx.caller] = initial_supply
    holder_count.set(0)
    add_holder(ctx.caller)

    buy_fee.set(5)
    sell_fee.set(5)
    transfer_fee.set(2)
    rewards_percentage.set(70)
    min_holding_for_rewards.set(0)
    max_transaction_bps.set(100)
    max_wallet_bps.set(200)

    marketing_wallet.set(marketing)
    distributing.set(False)

    fee_exempt[ctx.caller] = True
    fee_exempt[ctx.this] = True
    fee_exempt[marketing] = True

    reward_excluded[ctx.this] = True
    reward_excluded[ZERO_ADDRESS] = True

    metadata['token_name'] = "REFLECTION TAX TOKEN"
    metadata['token_symbol'] = "RTX"
    metadata['token_logo_url'] = ""
    metadata['token_website'] = ""
    metadata['operator'] = ctx.caller


# Helper functions

def assert_is_operator(action: str):
    assert ctx.caller == metadata['operator'], 'Only operator can ' + action + '!'


def assert_valid_address(address: str):
    assert address != ZERO_ADDRESS and address != '', 'Invalid address!'


def move(sender: str, to: str, amount: int):
    assert balances[sender] >= amount, 'Insufficient balance!'
    balances[sender] -= amount
    balances[to] += amount


def add_holder(account: str):
    if holder_index[account] != 0 or balances[account] == 0:
        return

    count = holder_count.get()
    holders[count] = account
    holder_index[account] = count + 1
    holder_count.set(count + 1)


def remove_holder(account: str):
    index = holder_index[account]
    if index == 0 or balances[account] != 0:
        return

    last = holder_count.get() - 1
    if index - 1 != last:
        # Swap the tail into the freed slot, order is not preserved
        last_account = holders[last]
        holders[index - 1] = last_account
        holder_index[last_account] = index

    holders[last] = None
    holder_count.set(last)
    holder_index[account] = 0


def compute_fee(from_pool: bool, to_pool: bool, amount: int):
    if from_pool:
        rate = buy_fee.get()
    elif to_pool:
        rate = sell_fee.get()
    else:
        rate = transfer_fee.get()

    fee = amount * rate // 100
    rewards_share = fee * rewards_percentage.get() // 100

    # Remainder of the split stays on the marketing leg
    return fee, fee - rewards_share, rewards_share


def max_transaction_amount():
    return total_supply.get() * max_transaction_bps.get() // BPS_DENOMINATOR


def max_wallet_amount():
    return total_supply.get() * max_wallet_bps.get() // BPS_DENOMINATOR


def process_transfer(sender: str, to: str, amount: int):
    assert amount >= 0, 'Cannot send negative balances!'
    assert_valid_address(sender)
    assert_valid_address(to)
    assert balances[sender] >= amount, 'Insufficient balance!'

    from_pool = liquidity_pools[sender]
    to_pool = liquidity_pools[to]

    if from_pool or to_pool:
        assert amount <= max_transaction_amount(), 'Transaction limit exceeded!'

    fee = 0

    if not (fee_exempt[sender] or fee_exempt[to]):
        fee, marketing_share, rewards_share = compute_fee(from_pool, to_pool, amount)

        if not to_pool:
            assert balances[to] + amount - fee <= max_wallet_amount(), 'Wallet limit exceeded!'

        if marketing_share > 0:
            move(sender, marketing_wallet.get(), marketing_share)
            add_holder(marketing_wallet.get())

        if rewards_share > 0:
            move(sender, ctx.this, rewards_share)
            add_holder(ctx.this)

    move(sender, to, amount - fee)

    remove_holder(sender)
    add_holder(to)

    TransferEvent({"from": sender, "to": to, "amount": amount - fee})


def is_eligible(account: str):
    if reward_excluded[account]:
        return False
    return balances[account] >= min_holding_for_rewards.get()


def total_eligible_balance():
    ineligible = 0
    for index in range(holder_count.get()):
        holder = holders[index]
        if not is_eligible(holder):
            ineligible += balances[holder]
    return total_supply.get() - ineligible


def send_native(to: str, amount: int):
    # Payouts never sum past the pooled value, so balance is always sufficient
    if to == ZERO_ADDRESS or to == ctx.this:
        return False

    currency.transfer(amount=amount, to=to)
    return True


# Token functions

@export
def change_metadata(key: str, value: Any):
    assert_is_operator('change metadata')
    assert key != 'operator', 'Use transfer_ownership to change the operator!'
    metadata[key] = value


@export
def transfer(amount: int, to: str):
    process_transfer(ctx.caller, to, amount)
    return f"Transferred {amount}"


@export
def approve(amount: int, to: str):
    assert amount >= 0, 'Cannot approve negative balances!'
    approvals[ctx.caller, to] = amount

    ApproveEvent({"from": ctx.caller, "to": to, "amount": amount})
    return f"Approved {amount} for {to}"


@export
def transfer_from(amount: int, to: str, main_account: str):
    spender_allowance = approvals[main_account, ctx.caller]
    assert spender_allowance >= amount, 'Not enough coins approved!'

    approvals[main_account, ctx.caller] = spender_allowance - amount
    process_transfer(main_account, to, amount)
    return f"Sent {amount} to {to} from {main_account}"


@export
def balance_of(address: str):
    return balances[address]


@export
def allowance(owner: str, spender: str):
    return approvals[owner, spender]


@export
def get_total_supply():
    return total_supply.get()


# Holder registry queries

@export
def holder_at(index: int):
    assert index >= 0 and index < holder_count.get(), 'Index out of bounds!'
    return holders[index]


@export
def get_holder_count():
    return holder_count.get()


@export
def get_total_eligible_balance():
    return total_eligible_balance()


# Reward distribution

@export
def distribute_rewards():
    assert not distributing.get(), 'Distribution already in progress!'

    pooled_value = currency.balance_of(address=ctx.this)
    assert pooled_value > 0, 'No funds available!'

    eligible_total = total_eligible_balance()
    assert eligible_total > 0, 'No eligible holders!'

    distributing.set(True)

    delivered = 0
    recipients = 0
    for index in range(holder_count.get()):
        holder = holders[index]
        if not is_eligible(holder):
            continue

        share = balances[holder] * SCALE // eligible_total
        payout = pooled_value * share // SCALE
        if payout == 0:
            continue

        if send_native(holder, payout):
            delivered += payout
            recipients += 1

    distributing.set(False)

    RewardsDistributedEvent({
        "total_distributed": delivered,
        "recipients": recipients,
        "pooled_value": pooled_value
    })

    return delivered


# Configuration queries

@export
def is_liquidity_pool(address: str):
    return liquidity_pools[address]


@export
def is_fee_exempt(address: str):
    return fee_exempt[address]


@export
def is_reward_excluded(address: str):
    return reward_excluded[address]


@export
def get_marketing_wallet():
    return marketing_wallet.get()


@export
def get_fees():
    return {
        "buy_fee": buy_fee.get(),
        "sell_fee": sell_fee.get(),
        "transfer_fee": transfer_fee.get(),
        "rewards_percentage": rewards_percentage.get()
    }


@export
def get_limits():
    return {
        "max_transaction_bps": max_transaction_bps.get(),
        "max_wallet_bps": max_wallet_bps.get(),
        "max_transaction_amount": max_transaction_amount(),
        "max_wallet_amount": max_wallet_amount(),
        "min_holding_for_rewards": min_holding_for_rewards.get()
    }


# Operator functions

@export
def set_fees(buy_bps: int, sell_bps: int, transfer_bps: int):
    assert_is_operator('set fees')
    assert buy_bps >= 0 and buy_bps <= MAX_BPS, 'Fee exceeds maximum!'
    assert sell_bps >= 0 and sell_bps <= MAX_BPS, 'Fee exceeds maximum!'
    assert transfer_bps >= 0 and transfer_bps <= MAX_BPS, 'Fee exceeds maximum!'

    # Inputs are basis points, rates are kept as whole percents
    buy_fee.set(buy_bps // 100)
    sell_fee.set(sell_bps // 100)
    transfer_fee.set(transfer_bps // 100)

    FeesUpdatedEvent({
        "buy_fee": buy_fee.get(),
        "sell_fee": sell_fee.get(),
        "transfer_fee": transfer_fee.get()
    })


@export
def set_rewards_percentage(percentage_bps: int):
    assert_is_operator('set rewards percentage')
    assert percentage_bps >= 0 and percentage_bps <= MAX_BPS, 'Fee exceeds maximum!'

    rewards_percentage.set(percentage_bps // 100)
    RewardsPercentageUpdatedEvent({"rewards_percentage": rewards_percentage.get()})


@export
def set_min_holding_for_rewards(amount: int):
    assert_is_operator('set minimum holding')
    assert amount >= 0, 'Minimum holding cannot be negative!'

    min_holding_for_rewards.set(amount)
    MinHoldingUpdatedEvent({"min_holding_for_rewards": amount})


@export
def set_max_transaction_bps(bps: int):
    assert_is_operator('set limits')
    assert bps >= 0 and bps <= MAX_BPS, 'Limit exceeds maximum!'

    max_transaction_bps.set(bps)
    LimitsUpdatedEvent({
        "max_transaction_bps": bps,
        "max_wallet_bps": max_wallet_bps.get()
    })


@export
def set_max_wallet_bps(bps: int):
    assert_is_operator('set limits')
    assert bps >= 0 and bps <= MAX_BPS, 'Limit exceeds maximum!'

    max_wallet_bps.set(bps)
    LimitsUpdatedEvent({
        "max_transaction_bps": max_transaction_bps.get(),
        "max_wallet_bps": bps
    })


@export
def set_liquidity_pool(address: str, is_pool: bool):
    assert_is_operator('set liquidity pools')
    assert_valid_address(address)

    liquidity_pools[address] = is_pool
    LiquidityPoolUpdatedEvent({"address": address, "is_pool": is_pool})


@export
def set_fee_exempt(address: str, exempt: bool):
    assert_is_operator('change fee exemption')

    fee_exempt[address] = exempt
    FeeExemptUpdatedEvent({"address": address, "exempt": exempt})


@export
def set_reward_excluded(address: str, excluded: bool):
    assert_is_operator('change reward exclusion')

    reward_excluded[address] = excluded
    RewardExcludedUpdatedEvent({"address": address, "excluded": excluded})


@export
def set_marketing_wallet(address: str):
    assert_is_operator('set marketing wallet')
    assert_valid_address(address)

    previous = marketing_wallet.get()
    marketing_wallet.set(address)
    fee_exempt[address] = True

    MarketingWalletUpdatedEvent({"previous": previous, "current": address})
    FeeExemptUpdatedEvent({"address": address, "exempt": True})


@export
def transfer_ownership(new_owner: str):
    assert_is_operator('transfer ownership')
    assert_valid_address(new_owner)

    previous = metadata['operator']
    metadata['operator'] = new_owner
    OwnershipTransferredEvent({"previous_owner": previous, "new_owner": new_owner})


@export
def withdraw_stuck_tokens(to: str, amount: int):
    assert_is_operator('withdraw tokens')
    assert_valid_address(to)
    assert amount > 0, 'Cannot send negative balances!'
    assert balances[ctx.this] >= amount, 'Insufficient balance!'

    move(ctx.this, to, amount)
    remove_holder(ctx.this)
    add_holder(to)

    TransferEvent({"from": ctx.this, "to": to, "amount": amount})


@export
def withdraw_foreign_token(token_contract: str, to: str, amount: int):
    assert_is_operator('withdraw tokens')
    assert_valid_address(to)
    assert token_contract != ctx.this, 'Use withdraw_stuck_tokens for this token!'
    assert amount > 0, 'Cannot send negative balances!'

    token = importlib.import_module(token_contract)
    assert token.balance_of(address=ctx.this) >= amount, 'Insufficient balance!'

    token.transfer(amount=amount, to=to)


@export
def withdraw_excess_native():
    assert_is_operator('withdraw native value')

    amount = currency.balance_of(address=ctx.this)
    assert amount > 0, 'No funds available!'

    currency.transfer(amount=amount, to=ctx.caller)
    NativeWithdrawnEvent({"to": ctx.caller, "amount": amount})
