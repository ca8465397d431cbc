import datetime
import logging
import math
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from backend.db import get_db_session
from backend.models.prediction import Prediction, PredictionOption, Vote
from backend.models.transaction import Transaction
from backend.models.user import User
from backend.utils.errors import BadRequest, Forbidden, NotFound

logger = logging.getLogger(__name__)


def parse_deadline(value) -> datetime.datetime:
    """ISO 8601 string -> naive UTC datetime (the storage convention)"""
    if not value or not isinstance(value, str):
        raise BadRequest('请提供截止时间')
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        dt = datetime.datetime.fromisoformat(text)
    except ValueError:
        raise BadRequest('截止时间格式不正确')
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt


def _amount(value) -> float:
    if value in (None, ''):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise BadRequest('金额格式不正确')
    if not math.isfinite(amount):
        raise BadRequest('金额格式不正确')
    if amount < 0:
        raise BadRequest('金额不能为负数')
    return amount


class PredictionService:
    """Polls with options, optional stake and a deadline"""

    @staticmethod
    def list_predictions(status: Optional[str] = None) -> List[Dict]:
        with next(get_db_session()) as db:
            query = db.query(Prediction)
            if status:
                query = query.filter(Prediction.status == status)
            predictions = query.order_by(Prediction.created_at.desc(), Prediction.id.desc()).all()
            return [p.to_dict() for p in predictions]

    @staticmethod
    def create(user_id: int, data: Dict) -> Dict:
        title = (data.get('title') or '').strip()
        if not title:
            raise BadRequest('请填写预测标题')

        options = [str(o).strip() for o in (data.get('options') or []) if str(o).strip()]
        if len(options) < 2:
            raise BadRequest('至少需要两个选项')

        deadline = parse_deadline(data.get('deadline'))
        if deadline <= datetime.datetime.utcnow():
            raise BadRequest('截止时间必须晚于当前时间')

        with next(get_db_session()) as db:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise NotFound('用户不存在')

            has_reward = bool(data.get('hasReward'))
            if has_reward and not user.is_member:
                raise Forbidden('只有会员才能创建有奖预测，请先升级会员')

            reward_per_person = _amount(data.get('rewardPerPerson')) if has_reward else 0.0

            prediction = Prediction(
                creator_id=user.id,
                title=title,
                description=(data.get('description') or '').strip() or None,
                has_reward=has_reward,
                reward_per_person=reward_per_person,
                deadline=deadline,
                options=[PredictionOption(position=i, text=text) for i, text in enumerate(options)],
            )
            db.add(prediction)
            db.commit()
            logger.info(f"User {user.id} created prediction {prediction.id}")

            db.refresh(prediction)
            return prediction.to_dict()

    @staticmethod
    def vote(user_id: int, prediction_id, option_index, amount=None, tx_hash: Optional[str] = None) -> Dict:
        try:
            option_index = int(option_index)
        except (TypeError, ValueError):
            raise BadRequest('请选择投票选项')
        amount = _amount(amount)
        tx_hash = (tx_hash or '').strip() or None

        with next(get_db_session()) as db:
            prediction = db.query(Prediction).filter(Prediction.id == prediction_id).first()
            if not prediction:
                raise NotFound('预测不存在')
            if prediction.status != 'active':
                raise BadRequest('该预测已关闭')
            if datetime.datetime.utcnow() > prediction.deadline:
                raise BadRequest('投票已截止')
            if not 0 <= option_index < len(prediction.options):
                raise BadRequest('选项不存在')

            existing = db.query(Vote).filter(
                Vote.prediction_id == prediction.id, Vote.user_id == user_id
            ).first()
            if existing:
                raise BadRequest('您已经投过票了')

            if tx_hash and db.query(Transaction).filter(Transaction.tx_hash == tx_hash).first():
                raise BadRequest('该交易已被使用')

            vote = Vote(
                prediction_id=prediction.id,
                user_id=user_id,
                option_index=option_index,
                amount=amount,
                tx_hash=tx_hash,
            )
            db.add(vote)
            prediction.total_pool = (prediction.total_pool or 0.0) + amount

            if amount and tx_hash:
                db.add(Transaction(
                    user_id=user_id,
                    type='prediction',
                    amount=amount,
                    tx_hash=tx_hash,
                    status='pending',
                ))

            pid = prediction.id
            try:
                db.commit()
            except IntegrityError:
                # a concurrent request committed the same vote or tx hash first
                db.rollback()
                if db.query(Vote).filter(Vote.prediction_id == pid, Vote.user_id == user_id).first():
                    raise BadRequest('您已经投过票了')
                if tx_hash and db.query(Transaction).filter(Transaction.tx_hash == tx_hash).first():
                    raise BadRequest('该交易已被使用')
                raise

            db.refresh(vote)
            return vote.to_dict()

    @staticmethod
    def get_detail(prediction_id) -> Dict:
        with next(get_db_session()) as db:
            prediction = db.query(Prediction).filter(Prediction.id == prediction_id).first()
            if not prediction:
                raise NotFound('预测不存在')
            votes = db.query(Vote).filter(Vote.prediction_id == prediction.id).order_by(Vote.id).all()
            return {
                'prediction': prediction.to_dict(),
                'votes': [v.to_dict() for v in votes],
            }

    @staticmethod
    def _owned(db, user_id: int, prediction_id) -> Prediction:
        prediction = db.query(Prediction).filter(Prediction.id == prediction_id).first()
        if not prediction:
            raise NotFound('预测不存在')
        if prediction.creator_id != user_id:
            raise Forbidden('只有创建者可以操作该预测')
        return prediction

    @staticmethod
    def close(user_id: int, prediction_id) -> Dict:
        with next(get_db_session()) as db:
            prediction = PredictionService._owned(db, user_id, prediction_id)
            if prediction.status != 'active':
                raise BadRequest('该预测已关闭')
            prediction.status = 'closed'
            db.commit()
            return prediction.to_dict()

    @staticmethod
    def settle(user_id: int, prediction_id, winning_option) -> Dict:
        """Pick the winning option and compute each winner's reward.

        Reward predictions pay rewardPerPerson to every winner; otherwise
        the staked pool is split equally between winners.
        """
        try:
            winning_option = int(winning_option)
        except (TypeError, ValueError):
            raise BadRequest('请选择获胜选项')

        with next(get_db_session()) as db:
            prediction = PredictionService._owned(db, user_id, prediction_id)
            if prediction.status == 'settled':
                raise BadRequest('该预测已结算')
            if not 0 <= winning_option < len(prediction.options):
                raise BadRequest('选项不存在')

            winners = [v for v in prediction.votes if v.option_index == winning_option]
            if prediction.has_reward:
                reward = prediction.reward_per_person
            elif winners and prediction.total_pool:
                reward = round(prediction.total_pool / len(winners), 6)
            else:
                reward = 0.0

            for vote in prediction.votes:
                vote.is_winner = vote.option_index == winning_option
                vote.reward_amount = reward if vote.is_winner else 0.0

            prediction.winning_option = winning_option
            prediction.status = 'settled'
            db.commit()
            logger.info(f"Prediction {prediction.id} settled: option {winning_option}, "
                        f"{len(winners)} winners, {reward} each")
            return {
                'prediction': prediction.to_dict(),
                'winners': len(winners),
                'rewardPerWinner': reward,
            }
